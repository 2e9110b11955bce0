"""Normalized emote and badge records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .payloads import EmotePayload, HelixBadge


class Flavor(StrEnum):
    """Provider an emote or badge record came from."""

    HELIX = "helix"
    BTTV = "bttv"
    FFZ = "ffz"
    SEVENTV = "seventv"


@dataclass(frozen=True, slots=True)
class EmoteRecord:
    """Immutable emote value. Identity is ``id``; ``name`` is the inline match key."""

    id: str
    name: str
    url: str
    flavor: Flavor
    ref: EmotePayload | None = None


@dataclass(frozen=True, slots=True)
class BadgeRecord:
    """Immutable badge value keyed by ``set_id/version``."""

    id: str
    name: str
    url: str
    flavor: Flavor = Flavor.HELIX
    ref: HelixBadge | None = None


# Returned by every lookup miss.
INVALID_RECORD = EmoteRecord(id="invalid", name="invalid", url="", flavor=Flavor.HELIX)
INVALID_BADGE = BadgeRecord(id="invalid", name="invalid", url="")


def is_invalid(record: EmoteRecord | BadgeRecord) -> bool:
    return record is INVALID_RECORD or record is INVALID_BADGE


__all__ = [
    "BadgeRecord",
    "EmoteRecord",
    "Flavor",
    "INVALID_BADGE",
    "INVALID_RECORD",
    "is_invalid",
]
