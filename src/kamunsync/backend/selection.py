"""Startup-time choice between remote-backed and cache-only persistence."""

from __future__ import annotations

import logging
from typing import Optional

from kamunsync.cache import PersistentCache
from kamunsync.config import Settings
from kamunsync.errors import ConfigurationError
from kamunsync.remote import RedisChangeFeed, RemoteStore, RestRemoteStore

from .base import Backend
from .cache_only import CacheOnly
from .remote_backed import RemoteBacked

logger = logging.getLogger(__name__)


def select_backend(
    settings: Settings,
    cache: PersistentCache,
    *,
    remote: Optional[RemoteStore] = None,
) -> Backend:
    """
    Decide the backend once for the process lifetime.

    A pre-built remote store always wins. Otherwise the remote is used only
    when the configured URL is https and the key is long enough; anything
    else degrades to cache-only (logged, never raised).
    """
    if remote is not None:
        logger.info("Using provided remote store")
        return RemoteBacked(remote, cache)

    try:
        credentials = settings.remote_credentials()
    except ConfigurationError as exc:
        logger.warning("Remote store misconfigured (%s); running cache-only", exc)
        return CacheOnly(cache)
    if credentials is None:
        logger.info("Remote store not configured; running cache-only")
        return CacheOnly(cache)

    feed = RedisChangeFeed(settings.redis_url) if settings.redis_url else None
    if feed is None:
        logger.warning("No redis_url configured; remote changes from other clients will not stream")

    store = RestRemoteStore(
        credentials,
        feed=feed,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        retry_backoff=settings.retry_backoff,
    )
    logger.info("Using remote store at %s", credentials.url)
    return RemoteBacked(store, cache)
