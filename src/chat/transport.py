"""Protocol definitions for the chat transport.

The multiplexer owns exactly one transport at a time and only talks to it
through this interface, so tests and alternative backends can plug in a
different implementation.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .credential import Credential

# (channel, user, text, raw_message)
MessageListener = Callable[[str, str, str, Any], None]
# (channel, user)
MembershipListener = Callable[[str, str], None]


class ChatTransport(Protocol):
    """Connection to the chat service."""

    @property
    def is_connected(self) -> bool:
        """True between a successful ``connect`` and ``close``."""
        ...

    async def connect(self) -> None:
        """Open the connection and authenticate. Raises on failure."""
        ...

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...

    async def join(self, channel: str) -> None:
        """Join a sanitized channel."""
        ...

    async def part(self, channel: str) -> None:
        """Leave a sanitized channel."""
        ...

    async def say(
        self, channel: str, text: str, attributes: Mapping[str, str] | None = None
    ) -> None:
        """Send a message. ``attributes`` may carry ``reply-parent-msg-id``."""
        ...

    def on_message(self, listener: MessageListener) -> None:
        ...

    def on_join(self, listener: MembershipListener) -> None:
        ...

    def on_part(self, listener: MembershipListener) -> None:
        ...


TransportFactory = Callable[["Credential"], ChatTransport]

__all__ = [
    "ChatTransport",
    "MembershipListener",
    "MessageListener",
    "TransportFactory",
]
