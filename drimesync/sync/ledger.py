"""Per-file record of the last uploaded modification time."""

import logging
from pathlib import Path
from typing import Optional

from ..utils import millis_to_iso

logger = logging.getLogger(__name__)


class DebounceLedger:
    """Collapses bursts of modify notifications into one upload.

    Maps a local path to the modification time (milliseconds) most recently
    confirmed uploaded. A modify event only triggers an upload when the file's
    current modification time is strictly newer than the recorded one.

    The ledger lives in memory and starts empty on every process start, so a
    full reconciliation always precedes live monitoring. Entries are never
    evicted; the key space is bounded by the number of distinct files
    modified while the process runs.
    """

    def __init__(self) -> None:
        self._entries: dict[Path, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def get(self, path: Path) -> Optional[int]:
        """Get the last uploaded modification time for a path."""
        return self._entries.get(path)

    def should_upload(self, path: Path, modified_at: int) -> bool:
        """Check whether a file at ``modified_at`` still needs uploading."""
        last_uploaded = self._entries.get(path)
        return last_uploaded is None or modified_at > last_uploaded

    def record(self, path: Path, modified_at: int) -> None:
        """Record a successful upload. Only call after the upload succeeded."""
        self._entries[path] = modified_at
        logger.debug(f"Ledger: {path.name} uploaded at {millis_to_iso(modified_at)}")

    def forget(self, path: Path) -> None:
        """Drop the entry for a path, if any."""
        self._entries.pop(path, None)

    def clear(self) -> None:
        """Reset the ledger to empty."""
        self._entries.clear()
