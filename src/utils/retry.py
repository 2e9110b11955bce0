"""Retry utilities for asynchronous operations using Tenacity."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors.internal import NetworkError

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Exception raised when all retry attempts have been exhausted."""

    def __init__(self, message: str, attempts: int, final_exception: BaseException | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.final_exception = final_exception


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    max_wait: float = 10.0,
    retry_on: tuple[type[BaseException], ...] = (NetworkError,),
) -> T:
    """Retry an asynchronous operation with exponential backoff using Tenacity.

    Only exceptions listed in ``retry_on`` trigger another attempt; anything
    else propagates immediately.

    Args:
        operation: Zero-argument async callable.
        max_attempts: Maximum number of attempts.
        max_wait: Upper bound for the backoff between attempts, in seconds.
        retry_on: Exception types considered transient.

    Returns:
        The result from operation if successful.

    Raises:
        RetryExhaustedError: If all attempts fail with a transient error.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=0.5, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        reraise=True,
    )

    try:
        return await retrying(operation)
    except retry_on as e:
        raise RetryExhaustedError(
            f"Operation failed after {max_attempts} attempts",
            attempts=max_attempts,
            final_exception=e,
        ) from e
