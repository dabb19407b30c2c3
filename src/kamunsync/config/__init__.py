"""Public config exports for kamunsync."""

from __future__ import annotations

from .credentials import MIN_KEY_LENGTH, RemoteCredentials, is_https_url
from .settings import Settings, get_settings

__all__ = [
    "MIN_KEY_LENGTH",
    "RemoteCredentials",
    "Settings",
    "get_settings",
    "is_https_url",
]
