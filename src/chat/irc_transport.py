"""Twitch chat transport speaking IRC over WebSocket."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from collections.abc import Mapping

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..constants import CHAT_ANONYMOUS_PREFIX, CHAT_CONNECT_TIMEOUT, CHAT_WS_URL
from ..errors.chat import ChatConnectionError, ChatError
from ..irc.parser import (
    IRCMessage,
    build_membership,
    build_privmsg,
    parse_irc_message,
)
from ..logs.logger import logger
from .credential import Credential
from .transport import MembershipListener, MessageListener

CAPABILITIES = "twitch.tv/tags twitch.tv/commands twitch.tv/membership"
_AUTH_FAILURE_MARKERS = (
    "login authentication failed",
    "improperly formatted auth",
    "login unsuccessful",
)
_TAG_VALUE_ESCAPES = str.maketrans({";": "\\:", " ": "\\s", "\\": "\\\\", "\r": "\\r", "\n": "\\n"})


def _format_tags(attributes: Mapping[str, str] | None) -> str:
    if not attributes:
        return ""
    body = ";".join(
        f"{k}={str(v).translate(_TAG_VALUE_ESCAPES)}" for k, v in attributes.items() if k
    )
    return f"@{body} " if body else ""


class IrcTransport:
    """One WebSocket connection to Twitch chat.

    Without an OAuth token the connection logs in as an anonymous
    ``justinfanNNNNN`` user that can read but not send.
    """

    def __init__(self, credential: Credential, url: str = CHAT_WS_URL) -> None:
        self.credential = credential
        self.url = url
        self.nick = (
            f"{CHAT_ANONYMOUS_PREFIX}{random.randint(10000, 99999)}"
            if credential.is_anonymous
            else (credential.username or "").lower()
        )
        self.ws: websockets.ClientConnection | None = None
        self._reader: asyncio.Task[None] | None = None
        self._connected = False
        self._message_listeners: list[MessageListener] = []
        self._join_listeners: list[MembershipListener] = []
        self._part_listeners: list[MembershipListener] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    # ---- listeners ----
    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def on_join(self, listener: MembershipListener) -> None:
        self._join_listeners.append(listener)

    def on_part(self, listener: MembershipListener) -> None:
        self._part_listeners.append(listener)

    # ---- lifecycle ----
    async def connect(self) -> None:
        if self._connected:
            return
        logging.info(f"🔌 Connecting to chat at {self.url} as {self.nick}")
        try:
            self.ws = await websockets.connect(
                self.url, open_timeout=CHAT_CONNECT_TIMEOUT
            )
            await self._send(f"CAP REQ :{CAPABILITIES}")
            if not self.credential.is_anonymous:
                await self._send(f"PASS oauth:{self.credential.oauth_token}")
            await self._send(f"NICK {self.nick}")
            async with asyncio.timeout(CHAT_CONNECT_TIMEOUT):
                await self._await_welcome()
        except ChatConnectionError:
            await self._drop_socket()
            raise
        except (OSError, TimeoutError, WebSocketException) as e:
            await self._drop_socket()
            raise ChatConnectionError(
                f"Chat connection failed: {type(e).__name__}: {e}",
                operation_type="connect",
            ) from e
        self._connected = True
        self._reader = asyncio.create_task(self._read_loop(), name=f"irc-reader-{self.nick}")
        logger.log_event("chat", "connected", user=self.nick)

    async def close(self) -> None:
        self._connected = False
        reader, self._reader = self._reader, None
        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        await self._drop_socket()

    # ---- commands ----
    async def join(self, channel: str) -> None:
        self._require_connection("join", channel)
        await self._send(f"JOIN #{channel}")

    async def part(self, channel: str) -> None:
        self._require_connection("part", channel)
        await self._send(f"PART #{channel}")

    async def say(
        self, channel: str, text: str, attributes: Mapping[str, str] | None = None
    ) -> None:
        self._require_connection("say", channel)
        if self.credential.is_anonymous:
            raise ChatError(
                "Anonymous chat connections cannot send messages",
                channel=channel,
                operation_type="say",
            )
        clean = " ".join(text.splitlines()).strip()
        if not clean:
            raise ChatError("Refusing to send an empty message", channel=channel, operation_type="say")
        await self._send(f"{_format_tags(attributes)}PRIVMSG #{channel} :{clean}")

    # ---- internals ----
    def _require_connection(self, operation: str, channel: str) -> None:
        if not self._connected or self.ws is None:
            raise ChatConnectionError(
                "Chat transport is not connected", channel=channel, operation_type=operation
            )

    async def _send(self, line: str) -> None:
        if self.ws is None:
            raise ChatConnectionError("Chat transport is not connected", operation_type="send")
        try:
            await self.ws.send(line)
        except ConnectionClosed as e:
            self._connected = False
            raise ChatConnectionError(
                f"Chat connection closed while sending: {e}", operation_type="send"
            ) from e

    async def _await_welcome(self) -> None:
        assert self.ws is not None
        async for frame in self.ws:
            for line in _split_frame(frame):
                msg = parse_irc_message(line)
                if msg.command == "PING":
                    await self._send(f"PONG :{msg.params}")
                elif msg.command == "001":
                    return
                elif msg.command == "NOTICE" and _is_auth_failure(msg):
                    raise ChatConnectionError(
                        f"Chat login rejected: {msg.params}", operation_type="connect"
                    )
        raise ChatConnectionError("Chat connection closed during login", operation_type="connect")

    async def _read_loop(self) -> None:
        assert self.ws is not None
        try:
            async for frame in self.ws:
                for line in _split_frame(frame):
                    await self._handle_line(line)
        except ConnectionClosed as e:
            logging.warning(f"⚠️ Chat connection closed: code={e.rcvd.code if e.rcvd else None}")
        except ChatError as e:
            logging.warning(f"⚠️ Chat connection lost: {e}")
        finally:
            self._connected = False

    async def _handle_line(self, line: str) -> None:
        msg = parse_irc_message(line)
        match msg.command:
            case "PING":
                await self._send(f"PONG :{msg.params}")
            case "PRIVMSG":
                privmsg = build_privmsg(msg)
                if privmsg is not None:
                    for listener in list(self._message_listeners):
                        self._notify(listener, privmsg.channel, privmsg.author, privmsg.message, privmsg)
            case "JOIN" | "PART":
                membership = build_membership(msg)
                if membership is None:
                    return
                listeners = self._join_listeners if msg.command == "JOIN" else self._part_listeners
                for listener in list(listeners):
                    self._notify(listener, membership.channel, membership.user)
            case "RECONNECT":
                logging.warning("⚠️ Chat server requested a reconnect")
            case "NOTICE":
                logging.info(f"💬 Chat notice: {msg.params}")
            case _:
                pass

    @staticmethod
    def _notify(listener, *args) -> None:
        try:
            listener(*args)
        except Exception as e:  # noqa: BLE001
            logging.error(f"💥 Chat listener raised {type(e).__name__}: {e}")

    async def _drop_socket(self) -> None:
        ws, self.ws = self.ws, None
        if ws is None:
            return
        try:
            await ws.close(code=1000)
        except (OSError, WebSocketException) as e:
            logging.warning(f"⚠️ WebSocket close error: {str(e)}")


def _split_frame(frame: str | bytes) -> list[str]:
    text = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
    return [line for line in text.split("\r\n") if line]


def _is_auth_failure(msg: IRCMessage) -> bool:
    lowered = msg.params.lower()
    return any(marker in lowered for marker in _AUTH_FAILURE_MARKERS)


def create_irc_transport(credential: Credential) -> IrcTransport:
    return IrcTransport(credential)


__all__ = ["CAPABILITIES", "IrcTransport", "create_irc_transport"]
