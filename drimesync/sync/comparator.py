"""File comparison logic for reconciliation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .scanner import LocalFileEntry, RemoteFileEntry


class SyncAction(str, Enum):
    """Actions that can be taken during a reconciliation pass."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DELETE_REMOTE = "delete_remote"
    """Delete every remote entry with this name"""

    SKIP = "skip"
    """Skip file (no action needed)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    name: str
    """File name shared by the local and remote side"""

    local_file: Optional[LocalFileEntry] = None
    """Local file (if exists)"""

    remote_files: list[RemoteFileEntry] = field(default_factory=list)
    """Remote entries with this name (possibly duplicates)"""


def group_remote_by_name(
    remote_files: list[RemoteFileEntry],
) -> dict[str, list[RemoteFileEntry]]:
    """Group remote entries by name, keeping duplicates together."""
    grouped: dict[str, list[RemoteFileEntry]] = {}
    for remote_file in remote_files:
        grouped.setdefault(remote_file.name, []).append(remote_file)
    return grouped


def newest_remote_timestamp(remote_files: list[RemoteFileEntry]) -> Optional[int]:
    """Return the newest known modification time among duplicates.

    Returns None when no entry reports a timestamp.
    """
    known = [f.modified_at for f in remote_files if f.modified_at is not None]
    return max(known) if known else None


class FileComparator:
    """Decides what a one-way local-to-remote mirror must do per name.

    A local file is uploaded when it has no remote counterpart or when it is
    strictly newer than the remote one. A remote timestamp that is unknown
    compares as older than any local timestamp. Remote names with no local
    counterpart are deleted.
    """

    def compare_files(
        self,
        local_files: dict[str, LocalFileEntry],
        remote_files: dict[str, list[RemoteFileEntry]],
    ) -> list[SyncDecision]:
        """Compare local and remote snapshots.

        Args:
            local_files: Mapping of name to LocalFileEntry
            remote_files: Mapping of name to the remote entries with that name

        Returns:
            One SyncDecision per distinct name, sorted by name
        """
        all_names = set(local_files) | set(remote_files)
        return [
            self.compare_single(name, local_files.get(name), remote_files.get(name, []))
            for name in sorted(all_names)
        ]

    def compare_single(
        self,
        name: str,
        local_file: Optional[LocalFileEntry],
        remote_files: list[RemoteFileEntry],
    ) -> SyncDecision:
        """Compare a single name and determine the action."""
        if local_file is None:
            return SyncDecision(
                action=SyncAction.DELETE_REMOTE,
                reason="File deleted locally",
                name=name,
                remote_files=remote_files,
            )

        if not remote_files:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="New local file",
                name=name,
                local_file=local_file,
            )

        remote_mtime = newest_remote_timestamp(remote_files)
        if remote_mtime is None:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Remote modification time unknown",
                name=name,
                local_file=local_file,
                remote_files=remote_files,
            )

        if local_file.modified_at > remote_mtime:
            return SyncDecision(
                action=SyncAction.UPLOAD,
                reason="Local file is newer",
                name=name,
                local_file=local_file,
                remote_files=remote_files,
            )

        return SyncDecision(
            action=SyncAction.SKIP,
            reason="Remote file is up to date",
            name=name,
            local_file=local_file,
            remote_files=remote_files,
        )
