"""Split chat text into plain text and emote fragments."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .cache import EmoteCache
from .providers import twitch_emote_url
from .records import EmoteRecord, Flavor, is_invalid

_WORDS = re.compile(r"(\s+)")


@dataclass(frozen=True, slots=True)
class Fragment:
    text: str
    emote: EmoteRecord | None = None

    @property
    def is_emote(self) -> bool:
        return self.emote is not None


def _append_text(out: list[Fragment], text: str) -> None:
    if not text:
        return
    if out and out[-1].emote is None:
        out[-1] = Fragment(out[-1].text + text)
    else:
        out.append(Fragment(text))


def _match_names(text: str, channel: str | None, cache: EmoteCache, out: list[Fragment]) -> None:
    for piece in _WORDS.split(text):
        if not piece:
            continue
        if piece.isspace() or "://" in piece:
            _append_text(out, piece)
            continue
        record = cache.get_by_name(channel, piece)
        if is_invalid(record):
            _append_text(out, piece)
        else:
            out.append(Fragment(piece, record))


def tokenize(
    text: str,
    channel: str | None,
    cache: EmoteCache,
    emote_offsets: Sequence[tuple[int, int, str]] = (),
) -> list[Fragment]:
    """Return the fragments of ``text``.

    ``emote_offsets`` are Twitch's own ``(start, end_exclusive, emote_id)``
    spans (see :func:`src.irc.parser.parse_emote_offsets`). They win over
    name matches; emotes Twitch tags but the cache has not loaded still get a
    CDN URL. The remaining text is matched word by word against the channel
    scope, then the global scope.
    """
    out: list[Fragment] = []
    pos = 0
    for start, end, emote_id in sorted(emote_offsets):
        if start < pos or end > len(text) or start >= end:
            continue
        _match_names(text[pos:start], channel, cache, out)
        name = text[start:end]
        record = cache.get(channel, emote_id)
        if is_invalid(record):
            record = EmoteRecord(
                id=emote_id, name=name, url=twitch_emote_url(emote_id), flavor=Flavor.HELIX
            )
        out.append(Fragment(name, record))
        pos = end
    _match_names(text[pos:], channel, cache, out)
    return out


__all__ = ["Fragment", "tokenize"]
