"""Utility functions for drimesync."""

from datetime import datetime, timedelta, timezone
from typing import Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_API_URL: str = "https://app.drime.cloud/api/v1"

# Retry configuration for transient HTTP errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

# Readiness wait before reading a freshly written file
DEFAULT_READY_ATTEMPTS: int = 10
DEFAULT_READY_DELAY: float = 0.1  # seconds

# Page size used when listing a remote folder
DEFAULT_PAGE_SIZE: int = 100


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    """Parse ISO format timestamp from the Drime API.

    Naive timestamps are assumed to be UTC, which is what the API returns.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2025-01-15T10:30:00.000000Z")

    Returns:
        Timezone-aware datetime or None if parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"

        try:
            dt = datetime.fromisoformat(timestamp_str)
        except ValueError:
            # Some responses carry more fractional digits than fromisoformat takes
            if "." not in timestamp_str:
                raise
            dt = datetime.fromisoformat(timestamp_str.split(".")[0])

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, AttributeError):
        return None


def iso_to_millis(timestamp_str: Optional[str]) -> Optional[int]:
    """Convert an ISO timestamp to milliseconds since the epoch.

    Examples:
        >>> iso_to_millis("1970-01-01T00:00:01.500000Z")
        1500
        >>> iso_to_millis(None) is None
        True
    """
    dt = parse_iso_timestamp(timestamp_str)
    if dt is None:
        return None
    return (dt - _EPOCH) // timedelta(milliseconds=1)


def millis_to_iso(millis: int) -> str:
    """Format milliseconds since the epoch as an ISO 8601 UTC string.

    Examples:
        >>> millis_to_iso(1500)
        '1970-01-01T00:00:01.500000+00:00'
    """
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


def mtime_millis(stat_result) -> int:
    """Return the modification time of an ``os.stat_result`` in milliseconds."""
    return stat_result.st_mtime_ns // 1_000_000
