"""In-memory emote and badge resolution caches.

One global store plus lazily created per-channel stores. Each store keeps a
forward index (id -> record) and a reverse index (name -> id); both are only
ever mutated together inside :meth:`ScopedCache.set`.

Lookups against a channel fall back to the global store, and a total miss
returns the invalid sentinel instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..chat.sanitize import sanitize
from ..logs.logger import logger
from .records import INVALID_BADGE, INVALID_RECORD, BadgeRecord, EmoteRecord

GLOBAL_SCOPE: None = None

R = TypeVar("R", EmoteRecord, BadgeRecord)


@dataclass(slots=True)
class _Store(Generic[R]):
    by_id: dict[str, R] = field(default_factory=dict)
    by_name: dict[str, str] = field(default_factory=dict)


class ScopedCache(Generic[R]):
    """Global + per-channel record store with scoped-then-global fallback."""

    def __init__(self, invalid: R) -> None:
        self._invalid = invalid
        self._global: _Store[R] = _Store()
        self._scoped: dict[str, _Store[R]] = {}

    # ---- writes ----
    def set(self, scope: str | None, record_id: str, record: R) -> None:
        store = self._store_for_write(scope)
        self._put(store, scope, record_id, record)

    def set_many(self, scope: str | None, records: Iterable[R]) -> int:
        """Commit a batch of records in one synchronous step.

        Returns the number of records written.
        """
        store = self._store_for_write(scope)
        count = 0
        for record in records:
            self._put(store, scope, record.id, record)
            count += 1
        return count

    # ---- reads ----
    def has(self, scope: str | None, record_id: str) -> bool:
        return record_id in self._store_for_read(scope).by_id

    def has_name(self, scope: str | None, name: str) -> bool:
        return name in self._store_for_read(scope).by_name

    def has_scope(self, channel: str) -> bool:
        return sanitize(channel) in self._scoped

    def get(self, scope: str | None, record_id: str) -> R:
        if scope is not GLOBAL_SCOPE:
            store = self._scoped.get(sanitize(scope))
            if store is not None and record_id in store.by_id:
                return store.by_id[record_id]
        return self._global.by_id.get(record_id, self._invalid)

    def get_by_name(self, scope: str | None, name: str) -> R:
        if scope is not GLOBAL_SCOPE:
            key = sanitize(scope)
            store = self._scoped.get(key)
            if store is not None and name in store.by_name:
                return self.get(key, store.by_name[name])
        record_id = self._global.by_name.get(name)
        if record_id is None:
            return self._invalid
        return self.get(GLOBAL_SCOPE, record_id)

    def records(self, scope: str | None) -> list[R]:
        return list(self._store_for_read(scope).by_id.values())

    def names(self, scope: str | None) -> list[str]:
        return list(self._store_for_read(scope).by_name)

    def size(self, scope: str | None) -> int:
        return len(self._store_for_read(scope).by_id)

    def scopes(self) -> list[str]:
        return sorted(self._scoped)

    # ---- internals ----
    def _store_for_write(self, scope: str | None) -> _Store[R]:
        if scope is GLOBAL_SCOPE:
            return self._global
        return self._scoped.setdefault(sanitize(scope), _Store())

    def _store_for_read(self, scope: str | None) -> _Store[R]:
        if scope is GLOBAL_SCOPE:
            return self._global
        return self._scoped.get(sanitize(scope)) or _Store()

    @staticmethod
    def _put(store: _Store[R], scope: str | None, record_id: str, record: R) -> None:
        previous = store.by_id.get(record_id)
        if previous is not None and previous.name != record.name:
            # Drop the stale reverse entry if it still points at this id.
            if store.by_name.get(previous.name) == record_id:
                del store.by_name[previous.name]
        owner = store.by_name.get(record.name)
        if owner is not None and owner != record_id:
            logger.log_event(
                "cache",
                "name_remapped",
                level=logging.DEBUG,
                channel=scope or "global",
                name=record.name,
                old_id=owner,
                new_id=record_id,
            )
        store.by_id[record_id] = record
        store.by_name[record.name] = record_id


class EmoteCache(ScopedCache[EmoteRecord]):
    def __init__(self) -> None:
        super().__init__(INVALID_RECORD)


class BadgeCache(ScopedCache[BadgeRecord]):
    def __init__(self) -> None:
        super().__init__(INVALID_BADGE)

    def resolve_tag(self, channel: str | None, badges_tag: str | None) -> list[BadgeRecord]:
        """Resolve an IRC ``badges`` tag such as ``subscriber/12,premium/1``.

        Badges with no known record are left out.
        """
        if not badges_tag:
            return []
        out: list[BadgeRecord] = []
        for part in badges_tag.split(","):
            key = part.strip()
            if not key:
                continue
            record = self.get(channel, key)
            if record is not self._invalid:
                out.append(record)
        return out


__all__ = ["BadgeCache", "EmoteCache", "GLOBAL_SCOPE", "ScopedCache"]
