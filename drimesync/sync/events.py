"""Filesystem change events and the watchdog bridge that produces them."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kinds of local change the monitor reacts to."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """One change to a file directly inside the watched directory."""

    kind: ChangeKind
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


def _as_path(raw: "str | bytes") -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode()
    return Path(raw)


class ChangeEventBridge(FileSystemEventHandler):
    """Translates watchdog callbacks into ChangeEvents.

    Runs on the watchdog observer thread and only hands events over to
    ``sink``; it never performs remote operations itself. Directory events
    and paths outside the watched directory are dropped. A move within the
    directory is reported as a delete of the old name followed by a create of
    the new one.
    """

    def __init__(self, root: Path, sink: Callable[[ChangeEvent], None]):
        super().__init__()
        self.root = root.absolute()
        self.sink = sink
        # Some backends (FSEvents) report symlink-resolved paths
        self._roots = {self.root, self.root.resolve()}

    def _in_root(self, path: Path) -> bool:
        return path.parent in self._roots

    def _emit(self, kind: ChangeKind, raw_path: "str | bytes") -> None:
        path = _as_path(raw_path)
        if not self._in_root(path):
            logger.debug(f"Ignoring {kind.value} event outside root: {path}")
            return
        self.sink(ChangeEvent(kind=kind, path=path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.CREATED, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.MODIFIED, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.DELETED, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory or not isinstance(event, FileSystemMovedEvent):
            return
        self._emit(ChangeKind.DELETED, event.src_path)
        self._emit(ChangeKind.CREATED, event.dest_path)
