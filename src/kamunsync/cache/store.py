"""Persistent key/value cache used as the always-available backend."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

KEY_PREFIX = "kamun"


def cache_key(kind: str, session_id: Optional[str] = None) -> str:
    """
    Build a namespaced cache key.

    Examples:
        cache_key("sessions") -> "kamun:sessions"
        cache_key("roster", "s1") -> "kamun:roster:s1"
    """
    if not kind:
        raise ValueError("kind must be a non-empty string")
    if session_id is None:
        return f"{KEY_PREFIX}:{kind}"
    return f"{KEY_PREFIX}:{kind}:{session_id}"


class PersistentCache(Protocol):
    """Durable string store. Reads and writes are synchronous."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryCache:
    """Process-local cache. Survives nothing; useful as a default and in tests."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileCache:
    """
    Cache backed by a single JSON object on disk.

    Every write replaces the file atomically (temp file + os.replace), so a
    crash mid-write leaves the previous contents intact.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._data: dict[str, str] = self._read()

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("cache values must be strings")
        self._data[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._write()

    def keys(self) -> list[str]:
        return list(self._data)

    def _read(self) -> dict[str, str]:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring cache file %s: expected a JSON object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".kamun-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
