"""Chat connection multiplexer.

Owns a single chat transport and fans inbound messages out to at most one
handler per channel. Channel keys always go through :func:`sanitize`.

Bookkeeping:
    joined_channels: every channel a join was ever issued for. Survives
        credential rotation.
    subscribed_channels: channels whose messages are delivered.
    handlers: channel -> handler(text, raw_message).

A join is issued at most once per live connection. After a credential
rotation the new connection starts with no joins, so the next ``subscribe``
for a channel joins it again (or ``replay=True`` does it up front).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..errors.chat import ChatConnectionError, ChatError, CredentialRotationError
from ..errors.handling import log_error
from ..logs.logger import logger
from .credential import Credential
from .irc_transport import create_irc_transport
from .sanitize import sanitize
from .transport import ChatTransport, TransportFactory

ChannelHandler = Callable[[str, Any], None]

_TRANSPORT_ERRORS = (ChatError, OSError, TimeoutError)


class ChatMultiplexer:
    def __init__(
        self,
        credential: Credential,
        transport_factory: TransportFactory = create_irc_transport,
        *,
        replay_on_rotation: bool = False,
    ) -> None:
        self._factory = transport_factory
        self._credential = credential
        self.replay_on_rotation = replay_on_rotation
        self._transport: ChatTransport | None = None
        self._live_joins: set[str] = set()
        self._rotation_lock = asyncio.Lock()
        self.joined_channels: set[str] = set()
        self.subscribed_channels: set[str] = set()
        self.handlers: dict[str, ChannelHandler] = {}

    @property
    def credential(self) -> Credential:
        return self._credential

    @property
    def transport(self) -> ChatTransport | None:
        return self._transport

    @property
    def is_connected(self) -> bool:
        return self._transport is not None and self._transport.is_connected

    # ---- lifecycle ----
    async def connect(self) -> None:
        """Open the first connection with the current credential."""
        async with self._rotation_lock:
            if self._transport is not None:
                return
            transport = self._factory(self._credential)
            self._arm(transport)
            try:
                await transport.connect()
            except _TRANSPORT_ERRORS as e:
                log_error("Initial chat connection failed", e, {"user": self._credential.username})
                if isinstance(e, ChatConnectionError):
                    raise
                raise ChatConnectionError(
                    f"Chat connection failed: {e}", operation_type="connect"
                ) from e
            self._transport = transport
            self._live_joins = set()

    async def close(self) -> None:
        async with self._rotation_lock:
            transport, self._transport = self._transport, None
            self._live_joins = set()
            if transport is not None:
                await self._close_quietly(transport)

    # ---- subscriptions ----
    async def subscribe(self, channel: str, handler: ChannelHandler) -> None:
        """Join ``channel`` if needed and route its messages to ``handler``.

        Replaces any handler already installed for the channel.

        Raises:
            ChatConnectionError: No live connection, or the join failed. The
                channel is not marked subscribed in that case.
        """
        key = sanitize(channel)
        transport = self._require_transport("join", key)
        if key not in self._live_joins:
            # Mark before awaiting so interleaved subscribes issue one join.
            self._live_joins.add(key)
            first_join = key not in self.joined_channels
            self.joined_channels.add(key)
            try:
                await transport.join(key)
            except _TRANSPORT_ERRORS as e:
                self._live_joins.discard(key)
                if first_join:
                    self.joined_channels.discard(key)
                log_error("Channel join failed", e, {"channel": key})
                if isinstance(e, ChatConnectionError):
                    raise
                raise ChatConnectionError(
                    f"Join failed for #{key}: {e}", channel=key, operation_type="join"
                ) from e
            logger.log_event("chat", "joined", channel=key)
        if key in self.handlers and self.handlers[key] is not handler:
            logger.log_event("chat", "handler_replaced", level=logging.DEBUG, channel=key)
        self.subscribed_channels.add(key)
        self.handlers[key] = handler
        logger.log_event("chat", "subscribed", level=logging.DEBUG, channel=key)

    def unsubscribe(self, channel: str) -> None:
        """Stop delivering messages for ``channel``.

        The channel stays joined and its handler stays registered; only the
        subscribed mark is dropped.
        """
        key = sanitize(channel)
        self.subscribed_channels.discard(key)
        logger.log_event("chat", "unsubscribed", level=logging.DEBUG, channel=key)

    def dispatch(self, channel: str, user: str, text: str, raw: Any) -> None:
        key = sanitize(channel)
        if key not in self.subscribed_channels:
            logger.log_event(
                "chat", "message_dropped", level=logging.DEBUG, channel=key, author=user
            )
            return
        handler = self.handlers.get(key)
        if handler is None:
            logger.log_event(
                "chat", "handler_missing", level=logging.WARNING, channel=key, author=user
            )
            return
        try:
            handler(text, raw)
        except Exception as e:  # noqa: BLE001
            log_error("Chat handler raised", e, {"channel": key, "author": user})

    # ---- outbound ----
    async def say(
        self, channel: str, text: str, attributes: Mapping[str, str] | None = None
    ) -> None:
        """Send ``text`` to ``channel``. Transport errors propagate unchanged."""
        key = sanitize(channel)
        transport = self._require_transport("say", key)
        await transport.say(key, text, attributes)

    # ---- credential rotation ----
    async def set_credential(
        self, credential: Credential, *, replay: bool | None = None
    ) -> None:
        """Rebuild the connection with ``credential``.

        Subscriptions, handlers and ``joined_channels`` are kept. With
        ``replay`` the subscribed channels are joined on the new connection
        right away; otherwise callers resubscribe.

        Raises:
            CredentialRotationError: The new connection could not be opened.
                The previous connection and all bookkeeping are untouched.
        """
        replay = self.replay_on_rotation if replay is None else replay
        async with self._rotation_lock:
            transport = self._factory(credential)
            self._arm(transport)
            try:
                await transport.connect()
            except _TRANSPORT_ERRORS as e:
                await self._close_quietly(transport)
                log_error(
                    "Credential rotation failed",
                    e,
                    {"user": credential.username, "subscribed": len(self.subscribed_channels)},
                )
                raise CredentialRotationError(
                    f"Could not connect with the new credential: {e}",
                    operation_type="rotate",
                ) from e
            old, self._transport = self._transport, transport
            self._credential = credential
            self._live_joins = set()
            if old is not None:
                await self._close_quietly(old)
            logger.log_event(
                "chat",
                "credential_rotated",
                user=credential.username or None,
                subscribed=len(self.subscribed_channels),
                replay=replay,
            )
            if replay:
                await self._replay_joins(transport)

    async def _replay_joins(self, transport: ChatTransport) -> None:
        for key in sorted(self.subscribed_channels):
            self._live_joins.add(key)
            try:
                await transport.join(key)
            except _TRANSPORT_ERRORS as e:
                self._live_joins.discard(key)
                log_error("Replayed join failed", e, {"channel": key})

    # ---- internals ----
    def _arm(self, transport: ChatTransport) -> None:
        transport.on_message(self.dispatch)
        transport.on_join(self._on_join)
        transport.on_part(self._on_part)

    def _on_join(self, channel: str, user: str) -> None:
        logger.log_event("chat", "member_join", level=logging.DEBUG, channel=sanitize(channel), member=user)

    def _on_part(self, channel: str, user: str) -> None:
        logger.log_event("chat", "member_part", level=logging.DEBUG, channel=sanitize(channel), member=user)

    def _require_transport(self, operation: str, channel: str) -> ChatTransport:
        if self._transport is None:
            raise ChatConnectionError(
                "Chat multiplexer has no connection", channel=channel, operation_type=operation
            )
        return self._transport

    @staticmethod
    async def _close_quietly(transport: ChatTransport) -> None:
        try:
            await transport.close()
        except _TRANSPORT_ERRORS as e:
            logging.warning(f"⚠️ Error closing chat transport: {type(e).__name__}: {e}")


__all__ = ["ChannelHandler", "ChatMultiplexer"]
