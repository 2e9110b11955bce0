"""Typed provider payloads.

Each provider returns its own JSON shape. The catalog client decodes the raw
JSON into one of these frozen variants so the adapters never need to sniff
fields. ``from_json`` constructors tolerate missing keys; an entry without an
id yields ``None`` and is skipped by the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _str(data: Mapping[str, Any], key: str, default: str = "") -> str:
    value = data.get(key, default)
    if value is None:
        return default
    return str(value)


def _str_tuple(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key)
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value)


@dataclass(frozen=True, slots=True)
class HelixEmote:
    """Emote from ``/helix/chat/emotes`` or ``/helix/chat/emotes/global``."""

    id: str
    name: str
    formats: tuple[str, ...] = ()
    scales: tuple[str, ...] = ()
    theme_modes: tuple[str, ...] = ()
    template: str = ""
    emote_type: str = ""
    tier: str = ""
    emote_set_id: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any], template: str = "") -> HelixEmote | None:
        emote_id = _str(data, "id")
        if not emote_id:
            return None
        return cls(
            id=emote_id,
            name=_str(data, "name"),
            formats=_str_tuple(data, "format"),
            scales=_str_tuple(data, "scale"),
            theme_modes=_str_tuple(data, "theme_mode"),
            template=template,
            emote_type=_str(data, "emote_type"),
            tier=_str(data, "tier"),
            emote_set_id=_str(data, "emote_set_id"),
        )


@dataclass(frozen=True, slots=True)
class BttvEmote:
    """Emote from the BetterTTV cached emote endpoints."""

    id: str
    code: str
    image_type: str = "png"
    animated: bool = False
    modifier: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> BttvEmote | None:
        emote_id = _str(data, "id")
        if not emote_id:
            return None
        return cls(
            id=emote_id,
            code=_str(data, "code"),
            image_type=_str(data, "imageType", "png") or "png",
            animated=bool(data.get("animated", False)),
            modifier=bool(data.get("modifier", False)),
        )


@dataclass(frozen=True, slots=True)
class FfzEmote:
    """Emote from a FrankerFaceZ emote set. ``urls`` is keyed by size ("1", "2", "4")."""

    id: str
    name: str
    urls: Mapping[str, str] = field(default_factory=dict)
    modifier: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> FfzEmote | None:
        emote_id = _str(data, "id")
        if not emote_id:
            return None
        raw_urls = data.get("urls")
        urls: dict[str, str] = {}
        if isinstance(raw_urls, Mapping):
            # JSON keys are strings already; integer keys show up in hand-built payloads.
            urls = {str(k): str(v) for k, v in raw_urls.items() if v}
        return cls(
            id=emote_id,
            name=_str(data, "name"),
            urls=urls,
            modifier=bool(data.get("modifier", False)),
        )


@dataclass(frozen=True, slots=True)
class SevenTvFile:
    name: str
    format: str
    width: int = 0
    height: int = 0


@dataclass(frozen=True, slots=True)
class SevenTvEmote:
    """Active emote entry of a 7TV emote set."""

    id: str
    name: str
    host_url: str = ""
    files: tuple[SevenTvFile, ...] = ()
    animated: bool = False
    zero_width: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> SevenTvEmote | None:
        emote_id = _str(data, "id")
        if not emote_id:
            return None
        details = data.get("data")
        if not isinstance(details, Mapping):
            details = {}
        host = details.get("host")
        if not isinstance(host, Mapping):
            host = {}
        files = []
        for entry in host.get("files") or []:
            if isinstance(entry, Mapping):
                files.append(
                    SevenTvFile(
                        name=_str(entry, "name"),
                        format=_str(entry, "format"),
                        width=int(entry.get("width") or 0),
                        height=int(entry.get("height") or 0),
                    )
                )
        flags = data.get("flags") or 0
        return cls(
            id=emote_id,
            name=_str(data, "name") or _str(details, "name"),
            host_url=_str(host, "url"),
            files=tuple(files),
            animated=bool(details.get("animated", False)),
            zero_width=bool(int(flags) & 1),
        )


@dataclass(frozen=True, slots=True)
class HelixBadge:
    """One version of a Helix chat badge set."""

    set_id: str
    version: str
    title: str = ""
    image_url_1x: str = ""
    image_url_2x: str = ""
    image_url_4x: str = ""

    @classmethod
    def from_set(cls, badge_set: Mapping[str, Any]) -> list[HelixBadge]:
        set_id = _str(badge_set, "set_id")
        if not set_id:
            return []
        out: list[HelixBadge] = []
        for version in badge_set.get("versions") or []:
            if not isinstance(version, Mapping) or not _str(version, "id"):
                continue
            out.append(
                cls(
                    set_id=set_id,
                    version=_str(version, "id"),
                    title=_str(version, "title"),
                    image_url_1x=_str(version, "image_url_1x"),
                    image_url_2x=_str(version, "image_url_2x"),
                    image_url_4x=_str(version, "image_url_4x"),
                )
            )
        return out


EmotePayload = HelixEmote | BttvEmote | FfzEmote | SevenTvEmote

__all__ = [
    "BttvEmote",
    "EmotePayload",
    "FfzEmote",
    "HelixBadge",
    "HelixEmote",
    "SevenTvEmote",
    "SevenTvFile",
]
