"""Snapshot types and directory scanning for sync operations."""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..models import FileEntry
from ..utils import iso_to_millis, mtime_millis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalFileEntry:
    """A regular file directly inside the synchronized directory."""

    name: str
    """Bare file name, the identity shared with the remote side"""

    path: Path
    """Absolute path to the file"""

    modified_at: int
    """Last modification time in milliseconds since the epoch"""

    @classmethod
    def from_path(cls, file_path: Path) -> Optional["LocalFileEntry"]:
        """Snapshot a path without following symbolic links.

        Returns:
            The entry, or None if the path is not a regular file

        Raises:
            OSError: If the path cannot be stat-ed (e.g. it vanished)
        """
        file_path = file_path.absolute()
        st = file_path.lstat()
        if not stat.S_ISREG(st.st_mode):
            return None
        return cls(name=file_path.name, path=file_path, modified_at=mtime_millis(st))


@dataclass(frozen=True)
class RemoteFileEntry:
    """A file entry inside the target remote folder."""

    name: str
    remote_id: int
    modified_at: Optional[int]
    """Modification time in milliseconds, None when the remote does not report one"""

    parent_folder_id: Optional[int] = None

    @classmethod
    def from_file_entry(cls, entry: FileEntry) -> "RemoteFileEntry":
        return cls(
            name=entry.name,
            remote_id=entry.id,
            modified_at=iso_to_millis(entry.updated_at),
            parent_folder_id=entry.parent_id,
        )


@dataclass(frozen=True)
class RemoteFolder:
    """The remote folder resolved at startup."""

    name: str
    id: int


class DirectoryScanner:
    """Takes flat snapshots of a local directory.

    Only regular files directly inside the directory are reported.
    Subdirectories are not entered and symbolic links are not followed.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> files = scanner.scan_local(Path("/sync/folder"))
    """

    def scan_local(self, directory: Path) -> list[LocalFileEntry]:
        """Scan a local directory, non-recursively.

        Args:
            directory: Directory to scan

        Returns:
            List of LocalFileEntry objects sorted by name

        Raises:
            OSError: If the directory itself cannot be listed
        """
        directory = directory.absolute()
        files: list[LocalFileEntry] = []

        for item in directory.iterdir():
            try:
                entry = LocalFileEntry.from_path(item)
            except OSError as e:
                # Removed between listing and stat
                logger.debug(f"Skipping {item.name}: {e}")
                continue
            if entry is not None:
                files.append(entry)

        files.sort(key=lambda f: f.name)
        return files

    def scan_remote(self, entries: list[FileEntry]) -> list[RemoteFileEntry]:
        """Convert API entries into RemoteFileEntry objects.

        Folders and trashed entries are dropped.

        Args:
            entries: Entries of one remote folder

        Returns:
            List of RemoteFileEntry objects
        """
        return [
            RemoteFileEntry.from_file_entry(entry)
            for entry in entries
            if not entry.is_folder and not entry.is_deleted
        ]
