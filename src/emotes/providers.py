"""Provider adapters: typed payload -> normalized record.

All functions here are pure. A payload that lacks the data needed for a URL
still produces a record, just with a best-effort or empty ``url``.
"""

from __future__ import annotations

from ..constants import BTTV_CDN_TEMPLATE, HELIX_EMOTE_TEMPLATE, TWITCH_EMOTE_V2
from .payloads import (
    BttvEmote,
    EmotePayload,
    FfzEmote,
    HelixBadge,
    HelixEmote,
    SevenTvEmote,
)
from .records import BadgeRecord, EmoteRecord, Flavor


def twitch_emote_url(
    emote_id: str, scale: int = 3, animated: bool = False, dark: bool = True
) -> str:
    """Build a Twitch CDN v2 emote URL.

    The CDN tops out at 3.0, so a requested scale of 4 maps to 3.
    """
    size = 3 if scale == 4 else scale
    fmt = "default" if animated else "static"
    theme = "dark" if dark else "light"
    return f"{TWITCH_EMOTE_V2}/{emote_id}/{fmt}/{theme}/{size}.0"


def _https(url: str) -> str:
    if url.startswith("//"):
        return "https:" + url
    return url


def helix_url(payload: HelixEmote) -> str:
    if (
        "static" not in payload.formats
        or "3.0" not in payload.scales
        or "dark" not in payload.theme_modes
    ):
        return ""
    template = payload.template or HELIX_EMOTE_TEMPLATE
    return (
        template.replace("{{id}}", payload.id)
        .replace("{{format}}", "static")
        .replace("{{theme_mode}}", "dark")
        .replace("{{scale}}", "3.0")
    )


def bttv_url(payload: BttvEmote) -> str:
    return BTTV_CDN_TEMPLATE.format(id=payload.id, image_type=payload.image_type)


def ffz_url(payload: FfzEmote) -> str:
    url = payload.urls.get("4")
    if not url and payload.urls:
        # Largest size the set offers.
        best = max(payload.urls, key=lambda k: int(k) if k.isdigit() else 0)
        url = payload.urls[best]
    return _https(url or "")


def seventv_url(payload: SevenTvEmote) -> str:
    host = _https(payload.host_url)
    if not payload.files:
        return host
    chosen = next(
        (f for f in payload.files if f.format == "WEBP" and f.name == "4x.webp"),
        None,
    )
    if chosen is None:
        webp = [f for f in payload.files if f.format == "WEBP"]
        chosen = max(webp, key=lambda f: f.width) if webp else payload.files[0]
    if not host:
        return ""
    return f"{host}/{chosen.name}"


def to_emote_record(payload: EmotePayload) -> EmoteRecord:
    """Map a provider payload onto an :class:`EmoteRecord`."""
    match payload:
        case HelixEmote():
            return EmoteRecord(
                id=payload.id,
                name=payload.name,
                url=helix_url(payload),
                flavor=Flavor.HELIX,
                ref=payload,
            )
        case BttvEmote():
            return EmoteRecord(
                id=payload.id,
                name=payload.code,
                url=bttv_url(payload),
                flavor=Flavor.BTTV,
                ref=payload,
            )
        case FfzEmote():
            return EmoteRecord(
                id=payload.id,
                name=payload.name,
                url=ffz_url(payload),
                flavor=Flavor.FFZ,
                ref=payload,
            )
        case SevenTvEmote():
            return EmoteRecord(
                id=payload.id,
                name=payload.name,
                url=seventv_url(payload),
                flavor=Flavor.SEVENTV,
                ref=payload,
            )
        case _:
            raise TypeError(f"Unsupported emote payload: {type(payload).__name__}")


def to_badge_record(payload: HelixBadge) -> BadgeRecord:
    key = f"{payload.set_id}/{payload.version}"
    url = payload.image_url_4x or payload.image_url_2x or payload.image_url_1x
    return BadgeRecord(id=key, name=key, url=url, flavor=Flavor.HELIX, ref=payload)


__all__ = [
    "bttv_url",
    "ffz_url",
    "helix_url",
    "seventv_url",
    "to_badge_record",
    "to_emote_record",
    "twitch_emote_url",
]
