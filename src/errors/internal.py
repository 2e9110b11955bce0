"""Centralized internal error hierarchy.

These exceptions provide semantic categories for retry logic and for the
per-provider failure reports produced by the catalog loaders. Raw aiohttp /
JSON errors never reach retry code directly; they are wrapped first.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transient network/IO issues (safe to retry).
  OAuthError           – Authentication / authorization related failures.
  ParsingError         – Response parsing / schema validation issues.
  RateLimitError       – Explicit rate limiting signalled by remote service.
  StorageError         – Local JSON store could not be read or written.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Transport layer failure (timeout, reset, 5xx). Retried by catalog fetches."""


class OAuthError(InternalError):
    """Credential rejected by the remote service (HTTP 401/403)."""


class ParsingError(InternalError):
    """Response body could not be decoded or had an unexpected shape."""


class RateLimitError(InternalError):
    """Remote service signalled rate limiting (HTTP 429)."""

    def __init__(
        self, message: str = "Rate limited", *, retry_after: float | None = None
    ) -> None:
        super().__init__(message, data={"retry_after": retry_after})


class StorageError(InternalError):
    """Local JSON store could not be read or written."""


__all__ = [
    "InternalError",
    "NetworkError",
    "OAuthError",
    "ParsingError",
    "RateLimitError",
    "StorageError",
]
