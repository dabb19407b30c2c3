"""Persistence backends behind the sync engines."""

from __future__ import annotations

from .base import Backend
from .cache_only import CacheOnly
from .remote_backed import RemoteBacked
from .selection import select_backend

__all__ = [
    "Backend",
    "CacheOnly",
    "RemoteBacked",
    "select_backend",
]
