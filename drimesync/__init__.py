"""drimesync - mirror a local directory into a Drime Cloud folder."""

from .api import DrimeClient
from .exceptions import (
    DrimeAPIError,
    DrimeAuthenticationError,
    DrimeConfigError,
    DrimeFileNotFoundError,
    DrimeInvalidResponseError,
    DrimeNetworkError,
    DrimeNotFoundError,
    DrimePermissionError,
    DrimeRateLimitError,
    DrimeUploadError,
    LocalDirectoryError,
    RemoteFolderNotFoundError,
    RemoteFolderUnreachableError,
    SyncError,
    WatchError,
)

__all__ = [
    "DrimeClient",
    "DrimeAPIError",
    "DrimeAuthenticationError",
    "DrimeConfigError",
    "DrimeFileNotFoundError",
    "DrimeInvalidResponseError",
    "DrimeNetworkError",
    "DrimeNotFoundError",
    "DrimePermissionError",
    "DrimeRateLimitError",
    "DrimeUploadError",
    "SyncError",
    "LocalDirectoryError",
    "RemoteFolderNotFoundError",
    "RemoteFolderUnreachableError",
    "WatchError",
]
