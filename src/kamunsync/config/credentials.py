"""Remote store credentials (endpoint URL + API key)."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from kamunsync.errors import ConfigurationError

MIN_KEY_LENGTH = 21


@dataclass(slots=True, frozen=True)
class RemoteCredentials:
    """
    Credentials for the remote synchronized store.

    Rules:
        - url must be an absolute https URL
        - key must be longer than 20 characters
    """

    url: str
    key: str

    def __post_init__(self) -> None:
        if not is_https_url(self.url):
            raise ConfigurationError(
                "Remote URL must be an https URL",
                details={"url": self.url},
            )
        if not isinstance(self.key, str) or len(self.key) < MIN_KEY_LENGTH:
            raise ConfigurationError(
                f"Remote key must be at least {MIN_KEY_LENGTH} characters",
            )

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST endpoint."""
        return self.url.rstrip("/") + "/rest/v1"


def is_https_url(value: object) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme == "https" and bool(parsed.netloc)
