"""Companion application: wires credentials, catalogs, caches and chat."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from .api.twitch import TwitchAPI
from .chat.credential import Credential, CredentialRotator
from .chat.irc_transport import create_irc_transport
from .chat.multiplexer import ChannelHandler, ChatMultiplexer
from .chat.ring import MessageRing
from .chat.sanitize import sanitize
from .chat.transport import TransportFactory
from .config.model import CompanionConfig
from .emotes.cache import BadgeCache, EmoteCache
from .emotes.catalog import CatalogClient
from .emotes.loaders import (
    LoadReport,
    load_channel,
    load_channel_badges,
    load_global,
    load_global_badges,
)
from .emotes.matcher import Fragment, tokenize
from .emotes.records import BadgeRecord
from .errors.chat import ChatError
from .errors.handling import log_error
from .errors.internal import InternalError
from .irc.parser import PrivMsg, parse_emote_offsets
from .logs.logger import logger
from .store.persistence import JsonStore, PersistentValue, channel_set_codec

LineListener = Callable[["ChatLine"], None]


@dataclass(slots=True)
class ChatLine:
    """One decorated chat message as kept in the history ring."""

    channel: str
    author: str
    text: str
    display_name: str = ""
    fragments: list[Fragment] = field(default_factory=list)
    badges: list[BadgeRecord] = field(default_factory=list)
    message_id: str | None = None
    received_at: float = field(default_factory=time.time)


class Companion:
    """Owns every long-lived component of the chat companion.

    Call :meth:`start` once inside a running loop and :meth:`close` on the way
    out. Channels opened through :meth:`open_channel` are remembered in the
    JSON store and reopened on the next start.
    """

    def __init__(
        self,
        config: CompanionConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport_factory: TransportFactory = create_irc_transport,
        catalog: CatalogClient | None = None,
        api: TwitchAPI | None = None,
    ) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        credential = config.credential()
        self.rotator = CredentialRotator(credential)
        self.catalog = catalog
        self.api = api
        self.emotes = EmoteCache()
        self.badges = BadgeCache()
        self.multiplexer = ChatMultiplexer(
            credential,
            transport_factory,
            replay_on_rotation=config.replay_on_rotation,
        )
        self.rotator.add_hook(self.multiplexer.set_credential)
        self.ring: MessageRing[ChatLine] = MessageRing(config.ring_limit)
        decode, encode = channel_set_codec
        self.saved_channels: PersistentValue[set[str]] = PersistentValue(
            JsonStore(config.store_path), "channels", set(), decode=decode, encode=encode
        )
        self._channel_ids: dict[str, str] = {}
        self._listeners: list[LineListener] = []
        self._started = False
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Credential:
        return self.rotator.active

    def add_listener(self, listener: LineListener) -> None:
        self._listeners.append(listener)

    # ---- lifecycle ----
    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            if self._session is None:
                self._session = aiohttp.ClientSession()
            if self.catalog is None:
                self.catalog = CatalogClient(self.rotator, self._session)
            if self.api is None:
                self.api = TwitchAPI(self._session)
            await self.multiplexer.connect()
            await self.load_globals()
            saved = await self.saved_channels.load()
            self._started = True
        for channel in sorted(saved | set(self.config.channels)):
            try:
                await self.open_channel(channel)
            except (ChatError, InternalError) as e:
                log_error("Could not open channel at startup", e, {"channel": channel})
        logger.log_event("app", "started", channels=len(self.multiplexer.subscribed_channels))

    async def close(self) -> None:
        await self.multiplexer.close()
        if self.catalog is not None:
            await self.catalog.close()
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        self._started = False
        logger.log_event("app", "stopped")

    async def load_globals(self) -> list[LoadReport]:
        assert self.catalog is not None
        reports = [await load_global(self.emotes, self.catalog)]
        if self.config.load_badges:
            reports.append(await load_global_badges(self.badges, self.catalog))
        return reports

    # ---- channels ----
    async def open_channel(self, login: str) -> None:
        """Load a channel's catalogs once, subscribe, and remember it.

        Catalog problems never prevent the subscription; a channel whose id
        cannot be resolved is opened without channel emotes.
        """
        key = sanitize(login.strip())
        if not key:
            raise ValueError("channel name cannot be empty")
        channel_id = await self._resolve_channel_id(key)
        if channel_id and not self.emotes.has_scope(key):
            assert self.catalog is not None
            await load_channel(channel_id, key, self.emotes, self.catalog)
            if self.config.load_badges:
                await load_channel_badges(channel_id, key, self.badges, self.catalog)
        await self.multiplexer.subscribe(key, self._handler_for(key))
        await self.saved_channels.update(lambda channels: channels | {key})
        logger.log_event("app", "channel_opened", channel=key, channel_id=channel_id or "unknown")

    async def close_channel(self, login: str) -> None:
        key = sanitize(login.strip())
        self.multiplexer.unsubscribe(key)
        await self.saved_channels.update(lambda channels: channels - {key})
        logger.log_event("app", "channel_closed", channel=key)

    def history(self, channel: str) -> list[ChatLine]:
        return self.ring.get(channel)

    async def say(self, channel: str, text: str, reply_to: str | None = None) -> None:
        attributes = {"reply-parent-msg-id": reply_to} if reply_to else None
        await self.multiplexer.say(channel, text, attributes)

    async def rotate_credential(self, credential: Credential, *, validate: bool = False) -> None:
        """Switch to ``credential`` and resubscribe open channels.

        A channel that cannot be rejoined is logged and skipped; the others
        are still rejoined.

        Raises:
            OAuthError: ``validate`` was requested and the token is invalid.
            CredentialRotationError: The new connection could not be opened.
        """
        await self.rotator.replace(credential, validate=validate, session=self._session)
        if self.multiplexer.replay_on_rotation:
            return
        failed: list[str] = []
        for key in sorted(self.multiplexer.subscribed_channels):
            handler = self.multiplexer.handlers.get(key) or self._handler_for(key)
            try:
                await self.multiplexer.subscribe(key, handler)
            except ChatError:
                failed.append(key)
        if failed:
            logging.warning(f"⚠️ Rejoin after rotation failed for: {', '.join(failed)}")

    # ---- internals ----
    async def _resolve_channel_id(self, key: str) -> str | None:
        if key in self._channel_ids:
            return self._channel_ids[key]
        credential = self.credential
        if credential.is_anonymous or not credential.client_id or self.api is None:
            logging.debug(f"🔍 No credential to resolve channel id for {key}")
            return None
        try:
            ids = await self.api.get_users_by_login(
                access_token=credential.oauth_token,
                client_id=credential.client_id,
                logins=[key],
            )
        except InternalError as e:
            log_error("Channel id lookup failed", e, {"channel": key})
            return None
        channel_id = ids.get(key)
        if channel_id:
            self._channel_ids[key] = channel_id
        else:
            logger.log_event("app", "channel_unknown", level=logging.WARNING, channel=key)
        return channel_id

    def _handler_for(self, key: str) -> ChannelHandler:
        def handle(text: str, raw: Any) -> None:
            line = self._build_line(key, text, raw)
            self.ring.add(key, line)
            for listener in list(self._listeners):
                listener(line)

        return handle

    def _build_line(self, key: str, text: str, raw: Any) -> ChatLine:
        if isinstance(raw, PrivMsg):
            offsets = parse_emote_offsets(raw.tags.get("emotes"))
            return ChatLine(
                channel=key,
                author=raw.author,
                text=text,
                display_name=raw.display_name,
                fragments=tokenize(text, key, self.emotes, offsets),
                badges=self.badges.resolve_tag(key, raw.tags.get("badges")),
                message_id=raw.message_id,
            )
        return ChatLine(
            channel=key,
            author=str(getattr(raw, "author", "") or ""),
            text=text,
            fragments=tokenize(text, key, self.emotes),
        )


__all__ = ["ChatLine", "Companion", "LineListener"]
