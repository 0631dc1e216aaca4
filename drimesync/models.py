"""Data models for Drime Cloud API responses."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class FileEntry:
    """A file or folder entry as returned by the Drime API."""

    id: int
    name: str
    type: str
    parent_id: Optional[int] = None
    updated_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        """Check if this entry is a folder."""
        return self.type == "folder"

    @property
    def is_deleted(self) -> bool:
        """Check if this entry sits in the trash."""
        return bool(self.deleted_at)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        """Create a FileEntry from an API dictionary.

        Args:
            data: Entry dictionary from the API

        Returns:
            FileEntry instance
        """
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            type=data.get("type") or "file",
            parent_id=data.get("parent_id"),
            updated_at=data.get("updated_at"),
            deleted_at=data.get("deleted_at"),
        )


@dataclass
class FileEntriesResult:
    """A page of file entries plus pagination info."""

    entries: list[FileEntry] = field(default_factory=list)
    pagination: Optional[dict[str, Any]] = None

    @classmethod
    def from_api_response(cls, result: Any) -> "FileEntriesResult":
        """Parse a ``/drive/file-entries`` response.

        Pagination keys may live at the top level or under a ``meta`` key
        depending on the endpoint version.
        """
        if not isinstance(result, dict):
            return cls()

        entries = [FileEntry.from_dict(item) for item in result.get("data") or []]

        source = result.get("meta") if isinstance(result.get("meta"), dict) else result
        pagination = None
        if "current_page" in source or "last_page" in source:
            pagination = {
                "current_page": source.get("current_page"),
                "last_page": source.get("last_page"),
                "per_page": source.get("per_page"),
                "total": source.get("total"),
            }

        return cls(entries=entries, pagination=pagination)
