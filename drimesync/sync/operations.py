"""Remote operations shared by the reconciler and the change monitor."""

import logging
from typing import Optional

from .readiness import ReadinessPolicy, ReadinessResult, wait_for_file_ready
from .remote import RemoteStore
from .scanner import LocalFileEntry, RemoteFileEntry, RemoteFolder

logger = logging.getLogger(__name__)


class SyncOperations:
    """Upload and delete operations scoped to one remote folder."""

    def __init__(
        self,
        store: RemoteStore,
        folder: RemoteFolder,
        readiness_policy: Optional[ReadinessPolicy] = None,
    ):
        """Initialize sync operations.

        Args:
            store: Remote store to mutate
            folder: Target remote folder
            readiness_policy: Retry budget for the pre-upload readiness wait
        """
        self.store = store
        self.folder = folder
        self.readiness_policy = readiness_policy or ReadinessPolicy()

    def upload_file(
        self, local_file: LocalFileEntry, wait_ready: bool = True
    ) -> Optional[RemoteFileEntry]:
        """Wait for the file to be ready, then upsert it remotely.

        Args:
            local_file: Local file to upload
            wait_ready: Run the readiness wait first (skip it when the caller
                already did)

        Returns:
            The resulting remote entry, or None if the file vanished before
            it could be read
        """
        if wait_ready:
            readiness = wait_for_file_ready(local_file.path, self.readiness_policy)
            if readiness is ReadinessResult.MISSING:
                logger.debug(f"{local_file.name} disappeared before upload, skipping")
                return None

        return self.store.upload(
            self.folder.id, local_file.name, local_file.path, local_file.modified_at
        )

    def delete_remote(self, name: str) -> int:
        """Delete every remote entry named ``name``.

        Returns:
            Number of remote entries deleted
        """
        return self.store.delete_by_name(self.folder.id, name)
