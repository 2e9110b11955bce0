"""IRC line parsing for Twitch chat over WebSocket."""

from __future__ import annotations

from dataclasses import dataclass, field

_TAG_ESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


@dataclass
class IRCMessage:
    raw: str
    prefix: str | None
    command: str | None
    params: str
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str:
        """Nick part of a ``nick!user@host`` prefix."""
        return (self.prefix or "").split("!", 1)[0]

    @property
    def target(self) -> str:
        """First parameter, usually ``#channel``."""
        return self.params.split(" ", 1)[0] if self.params else ""


def parse_irc_message(raw_line: str) -> IRCMessage:
    tags: dict[str, str] = {}
    prefix: str | None = None
    params = ""
    command: str | None = None

    original = raw_line
    line = raw_line.rstrip("\r\n")

    if line.startswith("@"):
        if " " not in line:
            return IRCMessage(raw=original, prefix=None, command=None, params="")
        tags_part, line = line.split(" ", 1)
        tags = _parse_tags(tags_part[1:])

    if line.startswith(":"):
        remainder = line[1:]
        if " " in remainder:
            prefix, line = remainder.split(" ", 1)
        else:
            prefix = remainder
            line = ""

    if " :" in line:
        line, params = line.split(" :", 1)
    elif line.startswith(":"):
        line, params = "", line[1:]

    parts = line.split()
    if parts:
        command = parts[0].upper()
        if len(parts) > 1:
            middle = parts[1:]
            params = " ".join(middle) + (f" {params}" if params else "")

    return IRCMessage(
        raw=original, prefix=prefix, command=command, params=params, tags=tags
    )


def _unescape_tag_value(value: str) -> str:
    if "\\" not in value:
        return value
    out: list[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            out.append(_TAG_ESCAPES.get(value[i + 1], value[i + 1]))
            i += 2
            continue
        if ch != "\\":
            out.append(ch)
        i += 1
    return "".join(out)


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = _unescape_tag_value(v)
    return tags


def parse_emote_offsets(emotes_tag: str | None) -> list[tuple[int, int, str]]:
    """Parse the ``emotes`` tag into ``(start, end_exclusive, emote_id)`` triples.

    Format: ``25:0-4,12-16/1902:6-10``. Malformed ranges are skipped; the
    result is sorted by start offset.
    """
    if not emotes_tag:
        return []
    out: list[tuple[int, int, str]] = []
    for group in emotes_tag.split("/"):
        if ":" not in group:
            continue
        emote_id, ranges = group.split(":", 1)
        for span in ranges.split(","):
            start_s, _, end_s = span.partition("-")
            try:
                start, end = int(start_s), int(end_s)
            except ValueError:
                continue
            if 0 <= start <= end:
                out.append((start, end + 1, emote_id))
    out.sort(key=lambda item: item[0])
    return out


@dataclass
class PrivMsg:
    author: str
    channel: str
    message: str
    tags: dict[str, str]
    raw: str = ""

    @property
    def message_id(self) -> str | None:
        return self.tags.get("id") or None

    @property
    def display_name(self) -> str:
        return self.tags.get("display-name") or self.author


@dataclass
class Membership:
    """JOIN or PART event for one user in one channel."""

    command: str
    user: str
    channel: str


def _channel_of(target: str) -> str:
    return target.lstrip("#").lower()


def build_privmsg(parsed: IRCMessage) -> PrivMsg | None:
    if parsed.command != "PRIVMSG":
        return None
    params = parsed.params.split(" ", 1)
    if len(params) < 2:
        return None
    channel_token, message = params
    # ACTION (/me) messages arrive wrapped in CTCP markers.
    if message.startswith("\x01ACTION ") and message.endswith("\x01"):
        message = message[len("\x01ACTION ") : -1]
    return PrivMsg(
        author=parsed.nick or "?",
        channel=_channel_of(channel_token),
        message=message,
        tags=parsed.tags,
        raw=parsed.raw,
    )


def build_membership(parsed: IRCMessage) -> Membership | None:
    if parsed.command not in ("JOIN", "PART"):
        return None
    if not parsed.target:
        return None
    return Membership(
        command=parsed.command,
        user=parsed.nick.lower(),
        channel=_channel_of(parsed.target),
    )


__all__ = [
    "IRCMessage",
    "Membership",
    "PrivMsg",
    "build_membership",
    "build_privmsg",
    "parse_emote_offsets",
    "parse_irc_message",
]
