"""Chat connection layer: sanitizer, transport, multiplexer, credentials."""

from __future__ import annotations

from .sanitize import sanitize

__all__ = ["sanitize"]
