"""Live change monitor: turns filesystem events into remote operations."""

import logging
import queue
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from watchdog.observers import Observer

from ..exceptions import WatchError
from .events import ChangeEvent, ChangeEventBridge, ChangeKind
from .ledger import DebounceLedger
from .operations import SyncOperations
from .readiness import ReadinessPolicy, ReadinessResult, wait_for_file_ready
from .remote import RemoteStore
from .scanner import LocalFileEntry, RemoteFolder

logger = logging.getLogger(__name__)

_STOP = object()


class MonitorState(str, Enum):
    """Lifecycle of the change monitor."""

    IDLE = "idle"
    """Waiting for the next event"""

    PROCESSING = "processing"
    """Handling one event"""

    STOPPED = "stopped"
    """The watch loop has exited"""


class ChangeMonitor:
    """Mirrors live changes of a local directory into a remote folder.

    A watchdog observer feeds events into a queue; a single worker (the
    thread calling ``run``) handles them one at a time in delivery order:

    - created: wait for readiness, then upload unconditionally
    - modified: upload only if the file's modification time is newer than
      the one recorded in the debounce ledger, then record it
    - deleted: delete every remote entry with the file's name

    A failure while handling one event is logged and the next event is
    processed. The loop ends on ``stop()`` or when the observer dies.
    """

    def __init__(
        self,
        store: RemoteStore,
        folder: RemoteFolder,
        local_dir: Path,
        ledger: Optional[DebounceLedger] = None,
        readiness_policy: Optional[ReadinessPolicy] = None,
        observer_factory: Callable[[], Any] = Observer,
        heartbeat: float = 1.0,
    ):
        """Initialize the monitor.

        Args:
            store: Remote store holding the target folder
            folder: Resolved remote folder
            local_dir: Directory to watch (not recursive)
            ledger: Debounce ledger; a fresh empty one by default
            readiness_policy: Retry budget for the pre-upload readiness wait
            observer_factory: Creates the watchdog observer
            heartbeat: Seconds between observer liveness checks while idle
        """
        self.local_dir = local_dir.absolute()
        self.readiness_policy = readiness_policy or ReadinessPolicy()
        self.operations = SyncOperations(store, folder, self.readiness_policy)
        self.ledger = ledger if ledger is not None else DebounceLedger()
        self.state = MonitorState.IDLE
        self.heartbeat = heartbeat

        self._observer_factory = observer_factory
        self._observer: Any = None
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._stopping = threading.Event()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def submit(self, event: ChangeEvent) -> None:
        """Queue an event for the worker. Dropped once stop() was called."""
        if self._stopping.is_set():
            logger.debug(f"Monitor stopping, dropping {event.kind.value} {event.name}")
            return
        self._queue.put(event)

    def stop(self) -> None:
        """Stop accepting events and let the in-flight event finish."""
        if not self._stopping.is_set():
            logger.info("Stopping change monitor...")
        self._stopping.set()
        self._queue.put(_STOP)

    def run(self) -> None:
        """Watch the directory and handle events until stopped.

        Raises:
            WatchError: If the observer cannot start or dies unexpectedly
        """
        self._start_observer()
        logger.info(f"Monitoring folder: {self.local_dir}")

        try:
            while not self._stopping.is_set():
                try:
                    item = self._queue.get(timeout=self.heartbeat)
                except queue.Empty:
                    if not self._observer.is_alive() and not self._stopping.is_set():
                        raise WatchError(
                            f"Watcher for {self.local_dir} stopped unexpectedly"
                        ) from None
                    continue

                if item is _STOP or self._stopping.is_set():
                    break
                self.handle_event(item)
        finally:
            self._stop_observer()
            self.state = MonitorState.STOPPED
            logger.info("Change monitor stopped")

    def _start_observer(self) -> None:
        self._observer = self._observer_factory()
        bridge = ChangeEventBridge(self.local_dir, self.submit)
        try:
            self._observer.schedule(bridge, str(self.local_dir), recursive=False)
            self._observer.start()
        except OSError as e:
            raise WatchError(f"Cannot watch {self.local_dir}: {e}") from e

    def _stop_observer(self) -> None:
        if self._observer is None:
            return
        try:
            self._observer.stop()
            self._observer.join(timeout=5)
        except RuntimeError as e:
            # join() on a thread that never started
            logger.debug(f"Observer shutdown: {e}")

    def handle_event(self, event: ChangeEvent) -> None:
        """Handle one event. Errors are logged, never raised."""
        self.state = MonitorState.PROCESSING
        try:
            if event.kind == ChangeKind.CREATED:
                self._handle_created(event)
            elif event.kind == ChangeKind.MODIFIED:
                self._handle_modified(event)
            elif event.kind == ChangeKind.DELETED:
                self._handle_deleted(event)
            else:
                raise ValueError(f"Unhandled change kind: {event.kind!r}")
        except Exception as e:
            logger.error(f"Error handling {event.kind.value} of {event.name}: {e}")
        finally:
            self.state = MonitorState.IDLE

    def _read_entry(self, event: ChangeEvent) -> Optional[LocalFileEntry]:
        try:
            local_file = LocalFileEntry.from_path(event.path)
        except FileNotFoundError:
            logger.debug(f"{event.name} vanished before it could be read, skipping")
            return None
        if local_file is None:
            # Same rule as a full pass: regular files only, no symlinks
            logger.debug(f"{event.name} is not a regular file, skipping")
        return local_file

    def _handle_created(self, event: ChangeEvent) -> None:
        logger.info(f"File created: {event.path}")
        if self._read_entry(event) is None:
            return
        readiness = wait_for_file_ready(event.path, self.readiness_policy)
        if readiness is ReadinessResult.MISSING:
            logger.debug(f"{event.name} vanished before it could be read, skipping")
            return

        local_file = self._read_entry(event)
        if local_file is None:
            return
        if self.operations.upload_file(local_file, wait_ready=False) is not None:
            logger.info(f"Uploaded new file: {event.name}")

    def _handle_modified(self, event: ChangeEvent) -> None:
        local_file = self._read_entry(event)
        if local_file is None:
            return

        if not self.ledger.should_upload(event.path, local_file.modified_at):
            logger.info(f"Modification ignored (already uploaded): {event.name}")
            return

        if self.operations.upload_file(local_file) is None:
            return
        self.ledger.record(event.path, local_file.modified_at)
        logger.info(f"File modified and uploaded: {event.name}")

    def _handle_deleted(self, event: ChangeEvent) -> None:
        logger.info(f"File deleted: {event.path}")
        # Deletes leave the ledger entry in place
        self.operations.delete_remote(event.name)
