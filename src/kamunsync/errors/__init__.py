"""Public error exports for kamunsync."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    ConfigurationError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    KamunSyncError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RemoteWriteFailure,
    ValidationError,
    map_http_error,
)

__all__ = [
    "KamunSyncError",
    "ConfigurationError",
    "ValidationError",
    "InvalidStateError",
    "NotFoundError",
    "InvalidArgumentError",
    "AuthError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "RemoteWriteFailure",
    "HttpErrorInfo",
    "map_http_error",
]
