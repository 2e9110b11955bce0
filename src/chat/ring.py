"""Bounded per-channel message history."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Generic, TypeVar

from ..constants import MESSAGE_RING_LIMIT
from .sanitize import sanitize

T = TypeVar("T")


class MessageRing(Generic[T]):
    """Keeps the most recent ``limit`` items per channel.

    A ``limit`` of zero or less keeps everything.
    """

    def __init__(self, limit: int = MESSAGE_RING_LIMIT) -> None:
        self.limit = limit
        self._store: dict[str, deque[T]] = {}

    def _new_deque(self, items: Iterable[T] = ()) -> deque[T]:
        return deque(items, maxlen=self.limit if self.limit > 0 else None)

    def add(self, channel: str, item: T) -> None:
        key = sanitize(channel)
        ring = self._store.get(key)
        if ring is None:
            ring = self._store[key] = self._new_deque()
        ring.append(item)

    def set(self, channel: str, items: Iterable[T]) -> None:
        """Replace a channel's history; the bound still applies."""
        self._store[sanitize(channel)] = self._new_deque(items)

    def get(self, channel: str) -> list[T]:
        ring = self._store.get(sanitize(channel))
        return list(ring) if ring is not None else []

    def clear(self, channel: str) -> None:
        self._store.pop(sanitize(channel), None)

    def channels(self) -> list[str]:
        return sorted(self._store)

    def __len__(self) -> int:
        return sum(len(r) for r in self._store.values())


__all__ = ["MessageRing"]
