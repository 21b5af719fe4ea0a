"""Configuration management for environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

from novelcraft.utils.exceptions import ConfigurationError

SNAPSHOT_POLICIES = ("time_bucket", "on_demand")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Load configuration from .env file and environment."""
        env_path = Path(".env")
        if env_path.exists():
            load_dotenv(env_path)

        # Required configuration
        self.database_url = self._get_required("DATABASE_URL")

        # Optional configuration with defaults
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Edit session tuning
        self.autosave_debounce_ms = self._get_positive_int("AUTOSAVE_DEBOUNCE_MS", 1000)
        self.edit_history_limit = self._get_positive_int("EDIT_HISTORY_LIMIT", 100)
        self.save_retry_base_ms = self._get_positive_int("SAVE_RETRY_BASE_MS", 1000)
        self.save_retry_max_ms = self._get_positive_int("SAVE_RETRY_MAX_MS", 30000)

        # Revision snapshots
        self.revision_snapshot_policy = os.getenv("REVISION_SNAPSHOT_POLICY", "time_bucket")
        if self.revision_snapshot_policy not in SNAPSHOT_POLICIES:
            raise ConfigurationError(
                f"REVISION_SNAPSHOT_POLICY must be one of {', '.join(SNAPSHOT_POLICIES)}, "
                f"got {self.revision_snapshot_policy!r}"
            )
        self.revision_bucket_seconds = self._get_positive_int("REVISION_BUCKET_SECONDS", 600)

        # Link index rebuilds
        self.rebuild_concurrency = self._get_positive_int("REBUILD_CONCURRENCY", 8)

    def _get_required(self, key: str) -> str:
        """Get required environment variable or raise error.

        Args:
            key: Environment variable name

        Returns:
            Environment variable value

        Raises:
            ConfigurationError: If variable is not set
        """
        value = os.getenv(key)
        if not value:
            raise ConfigurationError(f"{key} environment variable is not set")
        return value

    def _get_positive_int(self, key: str, default: int) -> int:
        """Get an optional positive integer environment variable.

        Raises:
            ConfigurationError: If the value is not a positive integer
        """
        raw = os.getenv(key)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
        if value <= 0:
            raise ConfigurationError(f"{key} must be positive, got {value}")
        return value

    @staticmethod
    def get_optional(key: str, default: str | None = None) -> str | None:
        """Get optional environment variable with default value.

        Args:
            key: Environment variable name
            default: Default value if not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)
