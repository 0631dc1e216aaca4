"""Best-effort wait for a file to stop being written.

Before uploading a file that was just created or modified, the sync core
tries to open it for reading. A writer holding an exclusive lock (Windows
share modes, BSD/macOS ``O_EXLOCK``) makes the open fail, and the attempt is
repeated after a short fixed delay. When the attempts run out the caller
proceeds anyway.

This is a heuristic, not a correctness guarantee: on platforms without
mandatory locking, or when the writer never releases its lock within the
retry budget, a partially written file can still be read.
"""

import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..utils import DEFAULT_READY_ATTEMPTS, DEFAULT_READY_DELAY

logger = logging.getLogger(__name__)


class ReadinessResult(str, Enum):
    """Outcome of a readiness wait."""

    READY = "ready"
    """The file could be opened"""

    MISSING = "missing"
    """The file no longer exists"""

    GAVE_UP = "gave_up"
    """Every attempt failed; proceed anyway"""


@dataclass(frozen=True)
class ReadinessPolicy:
    """Bounded retry policy with a fixed delay between attempts."""

    max_attempts: int = DEFAULT_READY_ATTEMPTS
    delay: float = DEFAULT_READY_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay cannot be negative")


def _try_open(path: Path) -> None:
    """Open the file for reading, taking an exclusive lock where supported.

    Raises:
        FileNotFoundError: If the file is gone
        OSError: If the file is still held by its writer
    """
    with open(path, "rb"):
        pass

    exlock = getattr(os, "O_EXLOCK", None)
    if exlock is not None:
        fd = os.open(path, os.O_RDONLY | exlock | os.O_NONBLOCK)
        os.close(fd)


def wait_for_file_ready(
    path: Path, policy: ReadinessPolicy = ReadinessPolicy()
) -> ReadinessResult:
    """Wait until a file can be opened for reading.

    Args:
        path: File to check
        policy: Retry budget

    Returns:
        READY, MISSING or GAVE_UP
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            _try_open(path)
            return ReadinessResult.READY
        except FileNotFoundError:
            return ReadinessResult.MISSING
        except OSError as e:
            logger.debug(
                f"{path.name} not ready (attempt {attempt}/{policy.max_attempts}): {e}"
            )
            if attempt < policy.max_attempts:
                time.sleep(policy.delay)

    logger.info(
        f"{path.name} still busy after {policy.max_attempts} attempts, uploading anyway"
    )
    return ReadinessResult.GAVE_UP
