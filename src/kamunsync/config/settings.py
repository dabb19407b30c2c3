"""
kamunsync configuration.

Settings are read from environment variables prefixed with KAMUN_ (and an
optional .env file). The remote backend is enabled only when both
KAMUN_REMOTE_URL and KAMUN_REMOTE_KEY are valid; see RemoteCredentials.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .credentials import RemoteCredentials


class Settings(BaseSettings):
    """Process-wide settings, resolved once at startup."""

    model_config = SettingsConfigDict(
        env_prefix="KAMUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote store (PostgREST-compatible)
    remote_url: Optional[str] = None
    remote_key: Optional[str] = None

    # Change feed
    redis_url: Optional[str] = None

    # Local persistent cache
    cache_path: str = "./data/kamun_cache.json"

    # HTTP behaviour
    request_timeout: float = 10.0
    max_retries: int = 3
    retry_backoff: float = 0.5

    # Sync behaviour
    debounce_ms: int = 500
    tick_interval: float = 1.0

    def remote_credentials(self) -> Optional[RemoteCredentials]:
        """
        Return validated credentials, or None when remote is not configured.

        Raises:
            ConfigurationError: if a URL and key are set but invalid.
        """
        if not self.remote_url or not self.remote_key:
            return None
        return RemoteCredentials(url=self.remote_url, key=self.remote_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
