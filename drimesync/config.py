"""Configuration management for drimesync.

Settings are read from environment variables first and then from a simple
``KEY=value`` file at ``~/.config/drimesync/config``. Explicit arguments
passed by the caller always win over both.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .utils import DEFAULT_API_URL, DEFAULT_READY_ATTEMPTS, DEFAULT_READY_DELAY

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """Lazily resolved settings for the Drime client and the sync core."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Config file location. Defaults to
                ~/.config/drimesync/config
        """
        self._config_path = config_path
        self._file_values: Optional[dict[str, str]] = None

    def get_config_path(self) -> Path:
        """Get the path of the configuration file."""
        if self._config_path is not None:
            return self._config_path
        return Path.home() / ".config" / "drimesync" / "config"

    def _load_file(self) -> dict[str, str]:
        if self._file_values is not None:
            return self._file_values

        values: dict[str, str] = {}
        path = self.get_config_path()
        if path.is_file():
            try:
                with open(path, encoding="utf-8") as f:
                    for line in f:
                        line = line.strip()
                        if not line or line.startswith("#") or "=" not in line:
                            continue
                        key, value = line.split("=", 1)
                        values[key.strip()] = value.strip().strip('"').strip("'")
            except OSError as e:
                logger.warning(f"Failed to read config file {path}: {e}")
        self._file_values = values
        return values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a setting in the environment, then in the config file."""
        value = os.environ.get(key)
        if value:
            return value
        return self._load_file().get(key, default)

    @property
    def api_key(self) -> Optional[str]:
        return self.get("DRIME_API_KEY")

    @property
    def api_url(self) -> str:
        return self.get("DRIME_API_URL") or DEFAULT_API_URL

    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key)

    def get_default_workspace(self) -> Optional[int]:
        """Get the default workspace ID, if one is configured."""
        value = self.get("DRIMESYNC_WORKSPACE")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring invalid DRIMESYNC_WORKSPACE value: {value!r}")
            return None

    @property
    def ready_attempts(self) -> int:
        value = self.get("DRIMESYNC_READY_ATTEMPTS")
        try:
            return int(value) if value else DEFAULT_READY_ATTEMPTS
        except ValueError:
            return DEFAULT_READY_ATTEMPTS

    @property
    def ready_delay(self) -> float:
        value = self.get("DRIMESYNC_READY_DELAY")
        try:
            return float(value) if value else DEFAULT_READY_DELAY
        except ValueError:
            return DEFAULT_READY_DELAY

    @property
    def delete_forever(self) -> bool:
        """Whether remote deletes skip the trash."""
        value = self.get("DRIMESYNC_DELETE_FOREVER", "")
        return (value or "").lower() in _TRUE_VALUES


config = Config()
