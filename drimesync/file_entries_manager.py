"""Paged listing and lookup of Drime file entries."""

import logging
from collections.abc import Iterator
from typing import Any, Optional

from .api import DrimeClient
from .models import FileEntriesResult, FileEntry
from .utils import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


class FileEntriesManager:
    """Walks the paginated file-entry endpoints of one workspace.

    Results are never cached: every call reflects the remote state at the
    time of the call.
    """

    def __init__(self, client: DrimeClient, workspace_id: int = 0):
        self.client = client
        self.workspace_id = workspace_id

    def _pages(self, per_page: int, **params: Any) -> Iterator[FileEntriesResult]:
        """Yield result pages until the API reports the last one."""
        page = 1
        while True:
            result = FileEntriesResult.from_api_response(
                self.client.get_file_entries(
                    **params,
                    workspace_id=self.workspace_id,
                    per_page=per_page,
                    page=page,
                )
            )
            yield result

            meta = result.pagination or {}
            current, last = meta.get("current_page"), meta.get("last_page")
            if current is None or last is None or current >= last:
                return
            page += 1

    def get_all_in_folder(
        self,
        folder_id: Optional[int] = None,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> list[FileEntry]:
        """List every direct child of a folder, across all pages.

        API errors propagate; a partial listing would make the caller
        believe that missing entries were deleted remotely.

        Args:
            folder_id: Folder to list, None for the workspace root
            per_page: Page size

        Returns:
            Entries in API order, trashed ones included
        """
        # The root is listed by sending no parent filter at all
        parents = None if folder_id is None else [folder_id]
        found: list[FileEntry] = []
        pages = 0
        for result in self._pages(per_page, parent_ids=parents):
            found.extend(result.entries)
            pages += 1

        logger.debug(f"Folder {folder_id}: {len(found)} entries in {pages} page(s)")
        return found

    def search_by_name(
        self,
        query: str,
        exact_match: bool = True,
        folders_only: bool = False,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> list[FileEntry]:
        """Run a server-side name search, skipping trashed entries.

        With ``exact_match`` the search stops at the first page holding a
        case-sensitive match, since callers only want that match.

        Returns:
            Matches in the order the API returned them
        """
        matches: list[FileEntry] = []
        for result in self._pages(per_page, query=query):
            for item in result.entries:
                if item.is_deleted:
                    continue
                if exact_match and item.name != query:
                    continue
                if folders_only and not item.is_folder:
                    continue
                matches.append(item)
            if exact_match and matches:
                break
        return matches

    def find_in_folder(
        self, folder_id: int, name: str, per_page: int = DEFAULT_PAGE_SIZE
    ) -> list[FileEntry]:
        """Find every file named ``name`` directly inside a folder.

        Only entries matching the name are requested, so the cost does not
        grow with the size of the folder. Duplicates are all returned.

        Returns:
            Non-trashed file entries with exactly this name, in API order
        """
        return [
            item
            for result in self._pages(per_page, query=name, parent_ids=[folder_id])
            for item in result.entries
            if item.name == name and not item.is_folder and not item.is_deleted
        ]

    def find_folder_by_name(self, folder_name: str) -> Optional[FileEntry]:
        """Look up a folder by its exact name, anywhere in the workspace.

        When several folders share the name, the first one returned by the
        API wins.

        Returns:
            The folder entry, or None
        """
        logger.debug(
            f"Looking up folder {folder_name!r} (workspace {self.workspace_id})"
        )
        candidates = self.search_by_name(folder_name, folders_only=True)
        if candidates:
            return candidates[0]

        # The search index lags behind freshly created folders
        logger.debug(f"Search missed {folder_name!r}, listing the root")
        for item in self.get_all_in_folder(folder_id=None):
            if item.is_folder and not item.is_deleted and item.name == folder_name:
                logger.debug(f"Found folder {folder_name!r} by listing (id={item.id})")
                return item

        return None
