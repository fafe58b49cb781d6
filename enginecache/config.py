"""Runtime configuration — env-driven.

Reads from a .env file and ENGINECACHE_* environment variables via
pydantic-settings.  Only the CLI builds a settings object; library code
takes explicit paths and flags.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Cache configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ENGINECACHE_USER_HOME=/opt/scanner
        export ENGINECACHE_LOG_LEVEL=DEBUG
        export ENGINECACHE_CLEANUP_MISMATCHED_DOWNLOADS=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ENGINECACHE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_home: Path = Path.home() / ".enginecache"
    cache_dir: Path | None = None  # overrides user_home/cache when set

    hash_algorithm: str = "sha256"
    log_level: str = "INFO"

    # Keep mismatched downloads in temp/ for forensics unless told otherwise
    cleanup_mismatched_downloads: bool = False
    temp_max_age_seconds: int = 24 * 60 * 60

    @property
    def cache_root(self) -> Path:
        """Effective cache root directory."""
        return self.cache_dir if self.cache_dir is not None else self.user_home / "cache"
