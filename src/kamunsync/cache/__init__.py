"""Public cache exports for kamunsync."""

from __future__ import annotations

from .store import FileCache, MemoryCache, PersistentCache, cache_key

__all__ = ["PersistentCache", "MemoryCache", "FileCache", "cache_key"]
