"""RemoteStore over a PostgREST-style HTTP API (internal use only)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from kamunsync.config import RemoteCredentials
from kamunsync.errors import (
    ApiError,
    HttpErrorInfo,
    NetworkError,
    RateLimitError,
    map_http_error,
)
from kamunsync.models import ChangeEvent, ChangeKind

from .base import EventCallback, Filters, Row, Subscription, event_matches
from .feed import RedisChangeFeed, channel_name
from .tables import SESSION_FK

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 0.5


class RestRemoteStore:
    """
    PostgREST remote store.

    Notes:
        - Filters are sent as `column=eq.value` query parameters.
        - Writes ask for `return=representation` so callers get stored rows.
        - Change notifications travel over an optional RedisChangeFeed; without
          one, subscriptions are inert and each client only sees its own writes.
    """

    def __init__(
        self,
        credentials: RemoteCredentials,
        *,
        feed: Optional[RedisChangeFeed] = None,
        timeout: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
    ) -> None:
        self._credentials = credentials
        self._feed = feed
        self._retry_policy = _RetryPolicy(max_retries, retry_backoff)
        self._owns_client = True
        self._client = httpx.AsyncClient(
            base_url=credentials.rest_url,
            timeout=httpx.Timeout(timeout),
            headers=_auth_headers(credentials.key),
        )

    @classmethod
    def from_client(
        cls,
        client: httpx.AsyncClient,
        *,
        feed: Optional[RedisChangeFeed] = None,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
    ) -> RestRemoteStore:
        """Create a store around a pre-built client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._credentials = None
        obj._feed = feed
        obj._retry_policy = _RetryPolicy(max_retries, retry_backoff)
        obj._owns_client = False
        obj._client = client
        return obj

    # ----------------------------
    # Public API
    # ----------------------------
    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[Row]:
        params = _filter_params(filters)
        if order_by is not None:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, records: list[Row]) -> list[Row]:
        if not records:
            return []
        rows = await self._request("POST", table, json=records)
        await self._publish(ChangeKind.INSERT, table, rows)
        return rows

    async def update(self, table: str, filters: Filters, patch: Row) -> list[Row]:
        rows = await self._request("PATCH", table, params=_filter_params(filters), json=patch)
        await self._publish(ChangeKind.UPDATE, table, rows)
        return rows

    async def delete(self, table: str, filters: Filters) -> list[Row]:
        rows = await self._request("DELETE", table, params=_filter_params(filters))
        await self._publish(ChangeKind.DELETE, table, rows)
        return rows

    def subscribe_changes(
        self,
        table: str,
        filters: Filters,
        on_event: EventCallback,
    ) -> Subscription:
        if self._feed is None:
            logger.debug("No change feed configured; %s subscription is inert", table)
            return Subscription()

        session_id = filters.get(SESSION_FK)
        channel = channel_name(table, session_id if isinstance(session_id, str) else None)

        def _filtered(event: ChangeEvent) -> None:
            if event.table == table and event_matches(event, filters):
                on_event(event)

        return self._feed.subscribe(channel, _filtered)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
        if self._feed is not None:
            await self._feed.close()

    # ----------------------------
    # Internals
    # ----------------------------
    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> list[Row]:
        async def _send() -> list[Row]:
            response = await self._client.request(method, f"/{table}", params=params, json=json)
            response.raise_for_status()
            if not response.content:
                return []
            data = response.json()
            if isinstance(data, dict):
                return [data]
            return list(data)

        return await self._execute(_send)

    async def _publish(self, kind: ChangeKind, table: str, rows: list[Row]) -> None:
        if self._feed is None:
            return
        for row in rows:
            session_id = row.get(SESSION_FK)
            scoped = session_id if isinstance(session_id, str) else None
            record = row if kind is not ChangeKind.DELETE else {"id": row.get("id")}
            event = ChangeEvent(kind=kind, table=table, record=record, session_id=scoped)
            await self._feed.publish(channel_name(table), event)
            if scoped is not None:
                await self._feed.publish(channel_name(table, scoped), event)

    async def _execute(self, func: Callable[[], Awaitable[T]]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return await func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    logger.debug("Retrying remote request after %s (attempt %d)", mapped, attempt + 1)
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = exc.details.get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, httpx.HTTPStatusError):
            info = _http_error_to_info(exc.response)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (httpx.TransportError, OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Remote store error", cause=exc)


def _auth_headers(key: str) -> dict[str, str]:
    return {
        "apikey": key,
        "Authorization": f"Bearer {key}",
        "Accept": "application/json",
        "Prefer": "return=representation",
    }


def _filter_params(filters: Optional[Filters]) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{'true' if value else 'false'}"
        else:
            params[column] = f"eq.{value}"
    return params


def _http_error_to_info(response: httpx.Response) -> HttpErrorInfo:
    message = None
    details: dict[str, Any] = {}

    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        message = payload.get("message") or None
        for key in ("code", "hint", "details"):
            if payload.get(key) is not None:
                details[key] = payload[key]

    return HttpErrorInfo(
        status_code=response.status_code,
        reason=response.reason_phrase or None,
        message=message if isinstance(message, str) else None,
        details=details or None,
    )
