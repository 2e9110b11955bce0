"""Utility package for the chat companion.

Exposed:
    retry_async: Tenacity-backed retry for transient async failures.
    RetryExhaustedError: Raised once every attempt failed transiently.
"""

from .retry import RetryExhaustedError, retry_async

__all__ = ["RetryExhaustedError", "retry_async"]
