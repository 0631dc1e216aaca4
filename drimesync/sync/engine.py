"""Reconciliation engine: one-shot, full-directory local-to-remote mirror."""

import logging
import time
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import LocalDirectoryError, RemoteFolderUnreachableError
from ..output import OutputFormatter
from .comparator import FileComparator, SyncAction, SyncDecision, group_remote_by_name
from .operations import SyncOperations
from .readiness import ReadinessPolicy
from .remote import RemoteStore
from .scanner import DirectoryScanner, LocalFileEntry, RemoteFileEntry, RemoteFolder

logger = logging.getLogger(__name__)

_STAT_KEYS = {
    SyncAction.UPLOAD: "uploads",
    SyncAction.DELETE_REMOTE: "deletes_remote",
    SyncAction.SKIP: "skips",
}

_PLAN_LABELS = (
    ("uploads", "↑ Upload"),
    ("deletes_remote", "✗ Delete remote"),
    ("skips", "= Skip"),
)


class SyncEngine:
    """Runs reconciliation passes between a local directory and a remote folder.

    A pass snapshots both sides, uploads every local file that is missing
    remotely or strictly newer than its remote counterpart, and deletes every
    remote name that has no local file. Failures of individual operations are
    logged and counted; the pass always runs to completion. Running a pass
    twice with no intervening change issues no remote operation the second
    time.
    """

    def __init__(
        self,
        store: RemoteStore,
        output: Optional[OutputFormatter] = None,
        readiness_policy: Optional[ReadinessPolicy] = None,
        scanner: Optional[DirectoryScanner] = None,
    ):
        """Initialize sync engine.

        Args:
            store: Remote store holding the target folder
            output: Output formatter for displaying progress/status
            readiness_policy: Retry budget for the pre-upload readiness wait
            scanner: Local directory scanner
        """
        self.store = store
        self.output = output or OutputFormatter()
        self.readiness_policy = readiness_policy or ReadinessPolicy()
        self.scanner = scanner or DirectoryScanner()
        self.comparator = FileComparator()

    def reconcile(
        self, local_dir: Path, folder: RemoteFolder, dry_run: bool = False
    ) -> dict:
        """Run one reconciliation pass.

        Args:
            local_dir: Local directory, the source of truth
            folder: Resolved remote folder
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics

        Raises:
            LocalDirectoryError: If local_dir is missing or not a directory
            RemoteFolderUnreachableError: If the folder fails the reachability check

        Examples:
            >>> engine = SyncEngine(store)
            >>> stats = engine.reconcile(Path("/local"), folder)
            >>> print(f"Uploaded {stats['uploads']} files")
        """
        if not local_dir.exists():
            raise LocalDirectoryError(f"Local directory does not exist: {local_dir}")
        if not local_dir.is_dir():
            raise LocalDirectoryError(f"Local path is not a directory: {local_dir}")
        if not self.store.check_folder_reachable(folder.id):
            raise RemoteFolderUnreachableError(
                f"Remote folder is not accessible: {folder.name} (ID: {folder.id})"
            )

        if not self.output.quiet:
            self.output.info(f"Syncing: {local_dir} -> {folder.name}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        stats = self._new_stats()

        # Step 1: Snapshot both sides
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet,
        ) as progress:
            task = progress.add_task("Scanning local directory...", total=None)
            local_files = self._scan_local(local_dir)
            progress.update(task, description=f"Found {len(local_files)} local file(s)")

            task = progress.add_task("Scanning remote folder...", total=None)
            try:
                remote_files = self.store.list_entries(folder.id)
            except Exception as e:
                logger.error(f"Failed to list remote folder {folder.name}: {e}")
                self.output.error(f"Failed to list remote folder {folder.name}: {e}")
                stats["errors"] += 1
                return stats
            progress.update(
                task, description=f"Found {len(remote_files)} remote file(s)"
            )

        # Step 2: Compare
        decisions = self._compare(local_files, remote_files)
        planned = self._plan(decisions)
        self._show_plan(planned)

        if dry_run:
            if not self.output.quiet:
                self._show_result(planned, dry_run=True)
            return planned

        # Step 3: Execute, one name at a time
        operations = SyncOperations(self.store, folder, self.readiness_policy)
        for decision in decisions:
            if decision.action == SyncAction.SKIP:
                stats["skips"] += 1
                continue
            self._apply(decision, operations, stats)

        if not self.output.quiet:
            self._show_result(stats, dry_run=False)

        return stats

    def _scan_local(self, local_dir: Path) -> list[LocalFileEntry]:
        try:
            return self.scanner.scan_local(local_dir)
        except OSError as e:
            raise LocalDirectoryError(
                f"Cannot read local directory {local_dir}: {e}"
            ) from e

    def _compare(
        self,
        local_files: list[LocalFileEntry],
        remote_files: list[RemoteFileEntry],
    ) -> list[SyncDecision]:
        local_file_map = {f.name: f for f in local_files}
        remote_file_map = group_remote_by_name(remote_files)

        duplicates = [name for name, group in remote_file_map.items() if len(group) > 1]
        if duplicates:
            logger.warning(
                f"Remote folder holds duplicate entries for: {', '.join(duplicates)}"
            )

        return self.comparator.compare_files(local_file_map, remote_file_map)

    @staticmethod
    def _new_stats() -> dict:
        return dict.fromkeys(("uploads", "deletes_remote", "skips", "errors"), 0)

    def _plan(self, decisions: list[SyncDecision]) -> dict:
        """Tally what executing ``decisions`` would do."""
        planned = self._new_stats()
        for decision in decisions:
            planned[_STAT_KEYS[decision.action]] += 1
        return planned

    def _apply(
        self,
        decision: SyncDecision,
        operations: SyncOperations,
        stats: dict,
    ) -> None:
        """Carry out one upload or delete, recording the outcome in ``stats``.

        Failures are logged and counted; they never abort the pass.
        """
        started = time.monotonic()
        try:
            if decision.action == SyncAction.UPLOAD:
                if decision.local_file is None:
                    raise ValueError(f"No local file for upload of {decision.name}")
                logger.debug(f"Upload {decision.name}: {decision.reason}")
                if operations.upload_file(decision.local_file) is None:
                    stats["skips"] += 1
                    return
                logger.info(f"Uploaded: {decision.name}")
            else:
                logger.debug(f"Delete {decision.name}: {decision.reason}")
                operations.delete_remote(decision.name)
                logger.info(f"Deleted from remote (not found locally): {decision.name}")
            stats[_STAT_KEYS[decision.action]] += 1
        except Exception as e:
            stats["errors"] += 1
            logger.error(f"Failed to sync {decision.name}: {e}")
            self.output.error(f"Failed to sync {decision.name}: {e}")
        finally:
            elapsed = time.monotonic() - started
            logger.debug(f"{decision.name}: {decision.action.value} in {elapsed:.2f}s")

    def _show_plan(self, planned: dict) -> None:
        if self.output.quiet:
            return

        self.output.info("Plan:")
        for key, label in _PLAN_LABELS:
            if planned[key]:
                self.output.info(f"  {label}: {planned[key]} file(s)")
        self.output.print("")

    def _show_result(self, stats: dict, dry_run: bool) -> None:
        done = stats["uploads"] + stats["deletes_remote"]
        if dry_run:
            self.output.success(f"Dry run complete, {done} change(s) pending")
            return

        self.output.success("Sync complete!")
        if done:
            self.output.info(
                f"  Uploaded: {stats['uploads']}, "
                f"deleted remotely: {stats['deletes_remote']}"
            )
        elif not stats["errors"]:
            self.output.info("Nothing to do, remote folder already matches")
        if stats["errors"]:
            self.output.warning(f"  Failed: {stats['errors']}")
