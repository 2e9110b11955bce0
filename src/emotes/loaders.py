"""Catalog loaders: fetch every provider for one scope and commit to a cache.

Providers load concurrently. Each provider's records are committed in one
synchronous ``set_many`` once its fetch has fully completed, so a reader
never observes half a provider. A failing provider is logged and reported;
its siblings still commit and nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..chat.sanitize import sanitize
from ..errors.chat import CatalogError
from ..logging_config import log_structured_error
from ..logs.logger import logger
from .cache import GLOBAL_SCOPE, BadgeCache, EmoteCache, ScopedCache
from .catalog import CatalogClient
from .providers import to_badge_record, to_emote_record
from .records import Flavor


@dataclass(slots=True)
class LoadReport:
    """Outcome of one load call: records written per provider and failures."""

    scope: str | None
    loaded: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return sum(self.loaded.values())


@dataclass(slots=True)
class _Outcome:
    flavor: Flavor
    count: int = 0
    error: BaseException | None = None


async def _load_one(
    flavor: Flavor,
    scope: str | None,
    fetch: Callable[[], Awaitable[Sequence[Any]]],
    convert: Callable[[Any], Any],
    cache: ScopedCache,
) -> _Outcome:
    try:
        payloads = await fetch()
        records = [convert(p) for p in payloads]
    except (CatalogError, AttributeError, ValueError, TypeError, KeyError) as e:
        log_structured_error(
            error_type="catalog",
            message=f"{flavor.value} catalog load failed for {scope or 'global'}",
            exception=e,
            context={"provider": flavor.value, "scope": scope or "global"},
            level=logging.WARNING,
        )
        return _Outcome(flavor, error=e)
    count = cache.set_many(scope, records)
    logger.log_event(
        "catalog",
        "loaded",
        level=logging.DEBUG,
        channel=scope or "global",
        provider=flavor.value,
        count=count,
    )
    return _Outcome(flavor, count=count)


async def _run(
    scope: str | None,
    jobs: list[tuple[Flavor, Callable[[], Awaitable[Sequence[Any]]]]],
    convert: Callable[[Any], Any],
    cache: ScopedCache,
    kind: str,
) -> LoadReport:
    outcomes = await asyncio.gather(
        *(_load_one(flavor, scope, fetch, convert, cache) for flavor, fetch in jobs)
    )
    report = LoadReport(scope=scope)
    for outcome in outcomes:
        if outcome.error is None:
            report.loaded[outcome.flavor.value] = outcome.count
        else:
            report.failed[outcome.flavor.value] = str(outcome.error)
    logger.log_event(
        "catalog",
        f"{kind}_load_complete",
        level=logging.INFO if report.ok else logging.WARNING,
        channel=scope or "global",
        total=report.total,
        failed=",".join(sorted(report.failed)) or "none",
    )
    return report


async def load_global(cache: EmoteCache, catalog: CatalogClient) -> LoadReport:
    jobs = [
        (Flavor.HELIX, catalog.helix_global_emotes),
        (Flavor.BTTV, catalog.bttv_global_emotes),
        (Flavor.FFZ, catalog.ffz_global_emotes),
        (Flavor.SEVENTV, catalog.seventv_global_emotes),
    ]
    return await _run(GLOBAL_SCOPE, jobs, to_emote_record, cache, "emote")


async def load_channel(
    channel_id: str, channel_name: str, cache: EmoteCache, catalog: CatalogClient
) -> LoadReport:
    """Load every provider's channel catalog into the ``channel_name`` scope.

    Helix, BTTV and 7TV are keyed by the numeric ``channel_id``; FFZ by login.
    """
    login = sanitize(channel_name)
    jobs = [
        (Flavor.HELIX, lambda: catalog.helix_channel_emotes(channel_id)),
        (Flavor.BTTV, lambda: catalog.bttv_channel_emotes(channel_id)),
        (Flavor.FFZ, lambda: catalog.ffz_channel_emotes(login)),
        (Flavor.SEVENTV, lambda: catalog.seventv_channel_emotes(channel_id)),
    ]
    return await _run(login, jobs, to_emote_record, cache, "emote")


async def load_global_badges(cache: BadgeCache, catalog: CatalogClient) -> LoadReport:
    jobs = [(Flavor.HELIX, catalog.helix_global_badges)]
    return await _run(GLOBAL_SCOPE, jobs, to_badge_record, cache, "badge")


async def load_channel_badges(
    channel_id: str, channel_name: str, cache: BadgeCache, catalog: CatalogClient
) -> LoadReport:
    jobs = [(Flavor.HELIX, lambda: catalog.helix_channel_badges(channel_id))]
    return await _run(sanitize(channel_name), jobs, to_badge_record, cache, "badge")


__all__ = [
    "LoadReport",
    "load_channel",
    "load_channel_badges",
    "load_global",
    "load_global_badges",
]
