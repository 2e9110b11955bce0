from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp

from ..logging_config import log_structured_error
from .chat import CatalogError, ChatConnectionError, ChatError
from .internal import (
    InternalError,
    NetworkError,
    OAuthError,
    ParsingError,
    RateLimitError,
    StorageError,
)

T = TypeVar("T")


def classify_error(error: BaseException) -> str:
    """Map an exception to the category used for structured logging."""
    if isinstance(error, NetworkError | OSError | ConnectionError | aiohttp.ClientConnectionError):
        return "network"
    if isinstance(error, OAuthError):
        return "auth"
    if isinstance(error, RateLimitError):
        return "ratelimit"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, CatalogError):
        return "catalog"
    if isinstance(error, ChatConnectionError):
        return "connection"
    if isinstance(error, ChatError):
        return "chat"
    if isinstance(error, StorageError):
        return "storage"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str, error: BaseException, context: dict[str, Any] | None = None
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error if isinstance(error, Exception) else None,
        context=context,
    )


def error_for_status(status: int, context: str) -> InternalError | None:
    """Translate an HTTP status into the internal error hierarchy.

    Returns None for 2xx statuses.
    """
    if 200 <= status < 300:
        return None
    if status in (401, 403):
        return OAuthError(
            f"Authentication failed in {context} (HTTP {status}). Check the client id and token.",
            data={"http_status": status},
        )
    if status == 429:
        return RateLimitError(f"API rate limit exceeded in {context}.")
    if 400 <= status < 500:
        return ParsingError(
            f"Client error in {context} (HTTP {status}).",
            data={"http_status": status},
        )
    return NetworkError(
        f"Server error in {context} (HTTP {status}).",
        data={"http_status": status},
    )


async def handle_api_error(operation: Callable[[], Awaitable[T]], context: str) -> T:
    """Run an API operation, wrapping transport and decode errors.

    Args:
        operation: The async API operation to execute.
        context: Descriptive context for the operation (e.g., "BTTV global emotes").

    Returns:
        The result of the operation if successful.

    Raises:
        InternalError subclasses: NetworkError, OAuthError, ParsingError, RateLimitError.
    """
    try:
        return await operation()
    except InternalError:
        raise
    except (aiohttp.ContentTypeError, ValueError) as e:
        raise ParsingError(f"Invalid response body in {context}: {str(e)}") from e
    except aiohttp.ClientResponseError as e:
        mapped = error_for_status(e.status, context)
        raise (mapped or InternalError(f"Unexpected error in {context}: {str(e)}")) from e
    except (aiohttp.ClientError, TimeoutError, OSError) as e:
        raise NetworkError(
            f"Network connectivity issue in {context}. Error: {str(e)}",
            data={"operation": context, "timestamp": time.time()},
        ) from e
