"""Exception hierarchy for drimesync."""


class DrimeAPIError(Exception):
    """Base exception for Drime Cloud API errors."""


class DrimeConfigError(DrimeAPIError):
    """Raised when the client is missing required configuration."""


class DrimeAuthenticationError(DrimeAPIError):
    """Raised when the API key is invalid or missing."""


class DrimePermissionError(DrimeAPIError):
    """Raised when access to a resource is forbidden."""


class DrimeNotFoundError(DrimeAPIError):
    """Raised when a remote resource does not exist."""


class DrimeRateLimitError(DrimeAPIError):
    """Raised when the API rate limit is exceeded."""


class DrimeNetworkError(DrimeAPIError):
    """Raised on connection or transport failures."""


class DrimeInvalidResponseError(DrimeAPIError):
    """Raised when the server returns something that is not valid JSON."""


class DrimeUploadError(DrimeAPIError):
    """Raised when an upload fails."""


class DrimeFileNotFoundError(DrimeAPIError):
    """Raised when a local file to upload does not exist."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"File not found: {file_path}")


class SyncError(Exception):
    """Base exception for synchronization failures."""


class LocalDirectoryError(SyncError):
    """Raised when the local directory is missing or is not a directory."""


class RemoteFolderNotFoundError(SyncError):
    """Raised when the target remote folder cannot be resolved by name."""

    def __init__(self, folder_name: str):
        self.folder_name = folder_name
        super().__init__(f"Remote folder not found: {folder_name}")


class RemoteFolderUnreachableError(SyncError):
    """Raised when the resolved remote folder no longer answers."""


class WatchError(SyncError):
    """Raised when the filesystem watch facility stops unexpectedly."""
