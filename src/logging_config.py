r"""
Logging configuration module for the Twitch chat companion.

Provides a clean, configurable logging setup using colorlog library with
structured error logging and aggregation capabilities.
"""

import logging
import os
import sys
import time
from collections import defaultdict
from typing import Any

import colorlog


class ErrorAggregator:
    """Aggregates error occurrences per category for summary reporting.

    Provider fetch failures are non-fatal and repeat on every channel load,
    so the aggregator gives an overview of which categories keep failing.
    """

    def __init__(self, max_per_type: int = 1000):
        self.errors: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.max_per_type = max_per_type
        self.start_time = time.time()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] | None = None) -> None:
        """Record an error occurrence with context."""
        entry = {
            "timestamp": time.time(),
            "message": message,
            "context": context or {},
        }
        bucket = self.errors[error_type]
        bucket.append(entry)
        if len(bucket) > self.max_per_type:
            del bucket[: len(bucket) - self.max_per_type]

    def get_error_summary(self) -> dict[str, Any]:
        """Get a summary of error patterns."""
        summary = {}
        for error_type, occurrences in self.errors.items():
            summary[error_type] = {
                "total_count": len(occurrences),
                "last_occurrence": occurrences[-1] if occurrences else None,
            }
        return summary

    def log_summary_report(self) -> None:
        """Log a summary report of error patterns."""
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return

        logging.warning("🚨 ERROR SUMMARY REPORT")
        for error_type, stats in summary.items():
            logging.warning(f"  {error_type}: {stats['total_count']} total")
            if stats["last_occurrence"]:
                logging.warning(f"    Last: {stats['last_occurrence']['message']}")

    def clear(self) -> None:
        self.errors.clear()


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error with structured context and aggregation.

    Args:
        error_type: Category of the error (e.g., 'network', 'auth', 'catalog')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    structured_message = f"[{error_type.upper()}] {message}"

    if exception:
        structured_message += f" | Exception: {type(exception).__name__}: {str(exception)}"

    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Supports environment variable configuration for log levels.
    """

    def __init__(self, config=None):
        self.config = config or {}

    def configure(self):
        """Configure logging with colored output using colorlog.

        Uses environment variables:
        - DEBUG: Set to 'true', '1', or 'yes' for DEBUG level, otherwise INFO
        """
        debug_env = os.environ.get("DEBUG", "").lower()
        log_level = logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        logging.basicConfig(
            level=log_level,
            handlers=[handler],
            format="%(message)s",
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        # Library chatter (handshakes, keepalive frames) stays out of INFO output
        logging.getLogger("websockets").setLevel(logging.INFO)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)

        for h in root_logger.handlers:
            h.setFormatter(formatter)
        return log_level
