"""Exception hierarchy and HTTP error mapping for kamunsync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class KamunSyncError(Exception):
    """
    Base exception for kamunsync.

    Attributes:
        details: Optional structured information (e.g., HTTP status, table).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class ConfigurationError(KamunSyncError):
    """Raised when remote backend settings are invalid (URL or key)."""


class ValidationError(KamunSyncError):
    """Raised when user input is rejected before any mutation."""


class InvalidStateError(KamunSyncError):
    """Raised when an operation is not allowed in the current state."""


class NotFoundError(KamunSyncError):
    """Raised when a remote row or local target does not exist (HTTP 404)."""


class InvalidArgumentError(KamunSyncError):
    """Raised when the remote store rejects a request (HTTP 400)."""


class AuthError(KamunSyncError):
    """Raised when the remote store rejects credentials (HTTP 401/403)."""


class ConflictError(KamunSyncError):
    """Raised on unique/foreign-key conflicts (HTTP 409)."""


class RateLimitError(KamunSyncError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(KamunSyncError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(KamunSyncError):
    """Raised for unclassified remote errors (5xx, unknown 4xx, etc.)."""


class RemoteWriteFailure(KamunSyncError):
    """
    A remote write that failed after the optimistic local update was applied.

    Never raised to callers of the sync layer; delivered to the error channel.
    """


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to kamunsync exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> KamunSyncError:
    """
    Map an HTTP error from the remote store to a kamunsync exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401/403 -> AuthError (row-level security denials are 403)
        - 404 -> NotFoundError
        - 409 -> ConflictError
        - 429 -> RateLimitError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code in (401, 403):
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code == 409:
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
