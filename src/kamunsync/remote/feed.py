"""Redis pub/sub change feed used by the REST remote store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import redis.asyncio as redis

from kamunsync.models import ChangeEvent

from .base import EventCallback, Subscription

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "kamun"


def channel_name(table: str, session_id: Optional[str] = None) -> str:
    """
    Channel for a table, optionally scoped to one session.

    Examples:
        channel_name("sessions") -> "kamun:sessions"
        channel_name("attendance", "s1") -> "kamun:attendance:s1"
    """
    if session_id is None:
        return f"{CHANNEL_PREFIX}:{table}"
    return f"{CHANNEL_PREFIX}:{table}:{session_id}"


class RedisChangeFeed:
    """
    Publishes and receives ChangeEvents over Redis pub/sub.

    Usage:
        async with RedisChangeFeed("redis://localhost:6379/0") as feed:
            sub = feed.subscribe("kamun:attendance:s1", on_event)
            ...
            sub.close()

    Publishing never raises: a failed publish is logged and the write that
    produced it still succeeds. A listener that loses its connection is
    resubscribed with exponential backoff; once the attempts run out the
    subscription is closed, so owners can see the channel is gone.
    """

    def __init__(
        self,
        redis_url: str,
        *,
        client: Any = None,
        reconnect_attempts: int = 5,
        reconnect_backoff: float = 0.5,
    ) -> None:
        self.redis_url = redis_url
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_backoff = reconnect_backoff
        self._client: Optional[Any] = client
        self._tasks: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> RedisChangeFeed:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def publish(self, channel: str, event: ChangeEvent) -> None:
        client = self._ensure_client()
        try:
            await client.publish(channel, event.to_json())
        except Exception as exc:
            logger.warning("Failed to publish change event on %s: %s", channel, exc)

    def subscribe(self, channel: str, on_event: EventCallback) -> Subscription:
        """Start listening on channel; callbacks run on the event loop."""
        client = self._ensure_client()
        task = asyncio.get_running_loop().create_task(
            self._listen(client, channel, on_event),
            name=f"kamun-feed:{channel}",
        )
        self._tasks.add(task)
        subscription = Subscription(on_close=task.cancel)

        def _finished(done: asyncio.Task[None]) -> None:
            self._tasks.discard(done)
            if not done.cancelled():
                subscription.close()

        task.add_done_callback(_finished)
        return subscription

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ----------------------------
    # Internals
    # ----------------------------
    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def _listen(self, client: Any, channel: str, on_event: EventCallback) -> None:
        failures = 0
        while True:
            try:
                await self._consume(client, channel, on_event)
                return
            except Exception as exc:
                failures += 1
                if failures > self.reconnect_attempts:
                    logger.warning(
                        "Change feed on %s lost after %d failures: %s",
                        channel,
                        failures,
                        exc,
                    )
                    return
                delay = self.reconnect_backoff * (2 ** (failures - 1))
                logger.warning(
                    "Change feed on %s failed (%s); resubscribing in %.1fs",
                    channel,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)

    async def _consume(self, client: Any, channel: str, on_event: EventCallback) -> None:
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(channel)
            logger.debug("Listening on %s", channel)
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    event = ChangeEvent.from_json(message["data"])
                except ValueError as exc:
                    logger.warning("Dropping malformed change event on %s: %s", channel, exc)
                    continue
                try:
                    on_event(event)
                except Exception:
                    logger.exception("Change handler failed on %s", channel)
        finally:
            try:
                await pubsub.unsubscribe(channel)
                await pubsub.aclose()
            except Exception as exc:
                logger.debug("Ignoring pubsub cleanup failure on %s: %s", channel, exc)
