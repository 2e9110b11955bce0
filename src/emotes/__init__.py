"""Emote and badge catalogs, caches and the inline tokenizer."""

from .cache import GLOBAL_SCOPE, BadgeCache, EmoteCache, ScopedCache  # noqa: F401
from .records import (  # noqa: F401
    INVALID_BADGE,
    INVALID_RECORD,
    BadgeRecord,
    EmoteRecord,
    Flavor,
)

__all__ = [
    "BadgeCache",
    "BadgeRecord",
    "EmoteCache",
    "EmoteRecord",
    "Flavor",
    "GLOBAL_SCOPE",
    "INVALID_BADGE",
    "INVALID_RECORD",
    "ScopedCache",
]
