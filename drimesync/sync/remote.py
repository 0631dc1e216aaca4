"""Remote object store contract and its Drime Cloud implementation."""

import logging
from pathlib import Path
from typing import Protocol

from ..api import DrimeClient
from ..exceptions import DrimeAPIError, RemoteFolderNotFoundError
from ..file_entries_manager import FileEntriesManager
from ..models import FileEntry
from .scanner import DirectoryScanner, RemoteFileEntry, RemoteFolder

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    """Folder-scoped operations the sync core needs from a remote store."""

    def resolve_folder(self, name: str) -> RemoteFolder:
        """Look up a folder by display name. The first match wins.

        Raises:
            RemoteFolderNotFoundError: If no folder has this name
        """
        ...

    def check_folder_reachable(self, folder_id: int) -> bool:
        """Cheap existence check for a resolved folder."""
        ...

    def list_entries(self, folder_id: int) -> list[RemoteFileEntry]:
        """List files directly inside a folder, trashed entries excluded."""
        ...

    def upload(
        self, folder_id: int, name: str, local_path: Path, modified_at: int
    ) -> RemoteFileEntry:
        """Upsert by name: replace an existing entry in place or create one."""
        ...

    def delete_by_name(self, folder_id: int, name: str) -> int:
        """Delete every entry with this name. Returns how many were deleted."""
        ...


class DrimeRemoteStore:
    """RemoteStore backed by the Drime Cloud API."""

    def __init__(
        self,
        client: DrimeClient,
        workspace_id: int = 0,
        delete_forever: bool = False,
    ):
        """Initialize the store.

        Args:
            client: Drime API client
            workspace_id: Workspace holding the target folder
            delete_forever: Delete permanently instead of moving to trash
        """
        self.client = client
        self.workspace_id = workspace_id
        self.delete_forever = delete_forever
        self.manager = FileEntriesManager(client, workspace_id)
        self._scanner = DirectoryScanner()

    def resolve_folder(self, name: str) -> RemoteFolder:
        folder = self.manager.find_folder_by_name(name)
        if folder is None:
            raise RemoteFolderNotFoundError(name)
        logger.info(f"Using folder: {folder.name} (ID: {folder.id})")
        return RemoteFolder(name=folder.name, id=folder.id)

    def check_folder_reachable(self, folder_id: int) -> bool:
        try:
            result = self.client.get_file_entry(
                folder_id, workspace_id=self.workspace_id
            )
        except DrimeAPIError as e:
            logger.error(f"Error accessing remote folder {folder_id}: {e}")
            return False

        data = result.get("fileEntry", result) if isinstance(result, dict) else None
        if not data or data.get("id") != folder_id:
            return False
        return not data.get("deleted_at")

    def list_entries(self, folder_id: int) -> list[RemoteFileEntry]:
        entries = self.manager.get_all_in_folder(folder_id=folder_id)
        return self._scanner.scan_remote(entries)

    def _named(self, folder_id: int, name: str) -> list[RemoteFileEntry]:
        entries = self.manager.find_in_folder(folder_id, name)
        return [RemoteFileEntry.from_file_entry(e) for e in entries]

    def upload(
        self, folder_id: int, name: str, local_path: Path, modified_at: int
    ) -> RemoteFileEntry:
        # Looking up right before the upload narrows, but does not close, the
        # window in which a concurrent writer could create a duplicate
        existing = self._named(folder_id, name)

        if existing:
            target = existing[0]
            logger.debug(f"Replacing content of {name} (ID: {target.remote_id})")
            data = self.client.replace_file_content(
                target.remote_id,
                local_path,
                workspace_id=self.workspace_id,
                last_modified=modified_at,
            )
            logger.info(f"File updated: {name} (ID: {target.remote_id})")
        else:
            data = self.client.upload_file(
                local_path,
                parent_id=folder_id,
                workspace_id=self.workspace_id,
                last_modified=modified_at,
            )
            logger.info(f"File uploaded: {name} (ID: {data.get('id')})")

        return RemoteFileEntry.from_file_entry(FileEntry.from_dict(data))

    def delete_by_name(self, folder_id: int, name: str) -> int:
        matches = self._named(folder_id, name)
        if not matches:
            logger.debug(f"Nothing named {name} to delete")
            return 0

        self.client.delete_file_entries(
            entry_ids=[e.remote_id for e in matches],
            delete_forever=self.delete_forever,
            workspace_id=self.workspace_id,
        )
        logger.info(f"Deleted from remote: {name} ({len(matches)} entries)")
        return len(matches)
