"""CLI interface for drimesync."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import DrimeClient
from .config import config
from .exceptions import DrimeAPIError, SyncError
from .output import OutputFormatter
from .sync import DrimeRemoteStore, MirrorService, ReadinessPolicy

logger = logging.getLogger(__name__)


@click.group()
@click.option("--api-key", "-k", envvar="DRIME_API_KEY", help="Drime Cloud API key")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.option(
    "--workspace",
    "-w",
    type=int,
    default=None,
    help="Workspace ID (uses DRIMESYNC_WORKSPACE or 0 if not specified)",
)
@click.version_option(package_name="drimesync")
@click.pass_context
def main(
    ctx: Any,
    api_key: Optional[str],
    quiet: bool,
    verbose: bool,
    workspace: Optional[int],
) -> None:
    """drimesync - Mirror a local directory into a Drime Cloud folder."""
    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["out"] = OutputFormatter(quiet=quiet)
    ctx.obj["workspace"] = workspace
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("drimesync").setLevel(logging.DEBUG)
        # Request-level chatter from the HTTP stack
        logging.getLogger("httpx").setLevel(logging.WARNING)
    elif quiet:
        logging.basicConfig(level=logging.WARNING)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_service(
    ctx: Any, local_dir: str, folder_name: str
) -> tuple[MirrorService, DrimeClient]:
    """Create a MirrorService from the global options and the configuration.

    Exits with status 1 if no API key is available.

    Returns:
        The service and the API client it uses, which the caller closes
    """
    out: OutputFormatter = ctx.obj["out"]
    api_key = ctx.obj.get("api_key")

    if not config.is_configured() and not api_key:
        out.error("API key not configured. Use --api-key or set DRIME_API_KEY.")
        ctx.exit(1)

    workspace = ctx.obj.get("workspace")
    if workspace is None:
        workspace = config.get_default_workspace() or 0

    client = DrimeClient(api_key=api_key)
    store = DrimeRemoteStore(
        client, workspace_id=workspace, delete_forever=config.delete_forever
    )
    policy = ReadinessPolicy(
        max_attempts=config.ready_attempts, delay=config.ready_delay
    )
    service = MirrorService(store, Path(local_dir), folder_name, out, policy)
    return service, client


@main.command()
@click.argument("local_dir", type=str)
@click.argument("folder_name", type=str)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be synced without making changes",
)
@click.pass_context
def sync(ctx: Any, local_dir: str, folder_name: str, dry_run: bool) -> None:
    """Run one reconciliation pass from LOCAL_DIR to FOLDER_NAME.

    LOCAL_DIR: Local directory, the source of truth (not recursive)
    FOLDER_NAME: Name of the remote folder to mirror into

    Local files missing remotely or newer than their remote copy are
    uploaded; remote files with no local counterpart are deleted.

    Examples:
        drimesync sync ./photos Photos
        drimesync sync ./photos Photos --dry-run
        drimesync -w 5 sync ./docs Docs          # In workspace 5
    """
    out: OutputFormatter = ctx.obj["out"]
    service, client = _build_service(ctx, local_dir, folder_name)

    try:
        stats = service.reconcile(dry_run=dry_run)
    except SyncError as e:
        out.error(str(e))
        ctx.exit(1)
    except DrimeAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)  # Standard exit code for SIGINT
    finally:
        client.close()

    if stats.get("errors", 0) > 0:
        out.warning(f"{stats['errors']} operation(s) failed, see log for details")
        ctx.exit(1)


@main.command()
@click.argument("local_dir", type=str)
@click.argument("folder_name", type=str)
@click.pass_context
def watch(ctx: Any, local_dir: str, folder_name: str) -> None:
    """Mirror LOCAL_DIR into FOLDER_NAME and keep watching for changes.

    Runs one full reconciliation pass first, then uploads created and
    modified files and deletes removed files as they happen. Stops cleanly
    on Ctrl+C or SIGTERM.

    Examples:
        drimesync watch ./photos Photos
        drimesync -v watch /srv/share Share     # With debug logging
    """
    out: OutputFormatter = ctx.obj["out"]
    service, client = _build_service(ctx, local_dir, folder_name)
    service.install_signal_handlers()

    try:
        service.run()
    except SyncError as e:
        out.error(str(e))
        ctx.exit(1)
    except DrimeAPIError as e:
        out.error(f"API error: {e}")
        ctx.exit(1)
    except KeyboardInterrupt:
        out.warning("\nWatch aborted by user")
        ctx.exit(130)
    finally:
        client.close()

    out.success("Stopped watching")


if __name__ == "__main__":
    main()
