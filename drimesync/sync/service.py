"""Mirror service: initial reconciliation followed by live monitoring."""

import logging
import signal
from pathlib import Path
from typing import Any, Callable, Optional

from watchdog.observers import Observer

from ..exceptions import LocalDirectoryError
from ..output import OutputFormatter
from .engine import SyncEngine
from .ledger import DebounceLedger
from .monitor import ChangeMonitor
from .readiness import ReadinessPolicy
from .remote import RemoteStore
from .scanner import RemoteFolder

logger = logging.getLogger(__name__)


class MirrorService:
    """Keeps a remote folder mirroring a local directory until stopped.

    ``run()`` resolves the remote folder, runs one full reconciliation to
    completion and only then starts the change monitor with an empty
    debounce ledger. SIGINT and SIGTERM stop the monitor cleanly.

    Examples:
        >>> service = MirrorService(store, Path("/data"), "Sync")
        >>> service.run()
    """

    def __init__(
        self,
        store: RemoteStore,
        local_dir: Path,
        folder_name: str,
        output: Optional[OutputFormatter] = None,
        readiness_policy: Optional[ReadinessPolicy] = None,
        observer_factory: Callable[[], Any] = Observer,
    ):
        """Initialize the service.

        Args:
            store: Remote store holding the target folder
            local_dir: Local directory, the source of truth
            folder_name: Display name of the remote folder
            output: Output formatter for displaying progress/status
            readiness_policy: Retry budget for the pre-upload readiness wait
            observer_factory: Creates the watchdog observer
        """
        self.store = store
        self.local_dir = local_dir
        self.folder_name = folder_name
        self.output = output or OutputFormatter()
        self.readiness_policy = readiness_policy or ReadinessPolicy()
        self.observer_factory = observer_factory

        self.folder: Optional[RemoteFolder] = None
        self.monitor: Optional[ChangeMonitor] = None
        self._stop_requested = False

    def validate_local_dir(self) -> None:
        """Check the local directory before touching the remote side.

        Raises:
            LocalDirectoryError: If the path is missing or not a directory
        """
        if not self.local_dir.exists():
            raise LocalDirectoryError(
                f"Local directory does not exist: {self.local_dir}"
            )
        if not self.local_dir.is_dir():
            raise LocalDirectoryError(
                f"Local path is not a directory: {self.local_dir}"
            )

    def resolve_folder(self) -> RemoteFolder:
        """Resolve the remote folder once. The first match wins."""
        if self.folder is None:
            self.folder = self.store.resolve_folder(self.folder_name)
        return self.folder

    def reconcile(self, dry_run: bool = False) -> dict:
        """Validate, resolve and run a single reconciliation pass."""
        self.validate_local_dir()
        folder = self.resolve_folder()
        engine = SyncEngine(
            self.store, self.output, readiness_policy=self.readiness_policy
        )
        return engine.reconcile(self.local_dir, folder, dry_run=dry_run)

    def run(self) -> dict:
        """Reconcile once, then mirror live changes until stopped.

        Returns:
            Statistics of the initial reconciliation

        Raises:
            LocalDirectoryError: If the local directory is invalid
            RemoteFolderNotFoundError: If the folder name does not resolve
            RemoteFolderUnreachableError: If the folder fails the reachability check
            WatchError: If the filesystem watcher fails
        """
        stats = self.reconcile()
        if self._stop_requested:
            logger.info("Stop requested during initial sync, not monitoring")
            return stats

        assert self.folder is not None
        self.monitor = ChangeMonitor(
            self.store,
            self.folder,
            self.local_dir,
            ledger=DebounceLedger(),
            readiness_policy=self.readiness_policy,
            observer_factory=self.observer_factory,
        )
        # stop() may have run while self.monitor was still None
        if self._stop_requested:
            logger.info("Stop requested before monitoring started")
            return stats

        self.output.info(
            f"Watching {self.local_dir} for changes (Ctrl+C to stop)..."
        )
        self.monitor.run()
        return stats

    def stop(self) -> None:
        """Request a clean shutdown; safe to call from a signal handler."""
        self._stop_requested = True
        if self.monitor is not None:
            self.monitor.stop()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to stop().

        The first signal asks for a clean shutdown, which lets a running
        reconciliation finish. A second one aborts with KeyboardInterrupt.
        """

        def signal_handler(signum, frame):
            if self._stop_requested:
                logger.warning(f"Received signal {signum} again, aborting")
                raise KeyboardInterrupt
            logger.info(f"Received signal {signum}, shutting down gracefully...")
            self.stop()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)
