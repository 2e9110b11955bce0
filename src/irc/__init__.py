"""IRC line parsing used by the WebSocket chat transport."""

from .parser import (  # noqa: F401
    IRCMessage,
    Membership,
    PrivMsg,
    build_membership,
    build_privmsg,
    parse_emote_offsets,
    parse_irc_message,
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
