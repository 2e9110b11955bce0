"""HTTP client for the emote and badge provider catalogs.

One fixed URL per (provider, scope). Every fetch decodes into the typed
payloads from :mod:`src.emotes.payloads`; any failure surfaces as a
:class:`CatalogError` carrying the provider and scope.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from ..chat.credential import CredentialRotator
from ..constants import (
    BTTV_BASE_URL,
    CATALOG_FETCH_ATTEMPTS,
    CATALOG_FETCH_TIMEOUT,
    CATALOG_RETRY_MAX_WAIT,
    FFZ_BASE_URL,
    HELIX_BASE_URL,
    SEVENTV_BASE_URL,
)
from ..errors.chat import CatalogError
from ..errors.handling import error_for_status, handle_api_error
from ..errors.internal import InternalError, NetworkError
from ..utils.retry import RetryExhaustedError, retry_async
from .payloads import BttvEmote, FfzEmote, HelixBadge, HelixEmote, SevenTvEmote
from .records import Flavor

_MISSING = object()


class CatalogClient:
    """Fetches provider catalogs over a shared ``aiohttp.ClientSession``.

    Helix requests authenticate with the rotator's active credential at call
    time, so a rotation is picked up without rebuilding the client.
    """

    def __init__(
        self,
        credentials: CredentialRotator,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._credentials = credentials
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=CATALOG_FETCH_TIMEOUT)

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # ---- Helix ----
    async def helix_global_emotes(self) -> list[HelixEmote]:
        data = await self._helix("chat/emotes/global", None, scope=None)
        return _helix_emotes(data)

    async def helix_channel_emotes(self, channel_id: str) -> list[HelixEmote]:
        data = await self._helix("chat/emotes", {"broadcaster_id": channel_id}, scope=channel_id)
        return _helix_emotes(data)

    async def helix_global_badges(self) -> list[HelixBadge]:
        data = await self._helix("chat/badges/global", None, scope=None)
        return _helix_badges(data)

    async def helix_channel_badges(self, channel_id: str) -> list[HelixBadge]:
        data = await self._helix("chat/badges", {"broadcaster_id": channel_id}, scope=channel_id)
        return _helix_badges(data)

    # ---- BetterTTV ----
    async def bttv_global_emotes(self) -> list[BttvEmote]:
        data = await self._get_json(
            f"{BTTV_BASE_URL}/cached/emotes/global", Flavor.BTTV, None
        )
        return _decode_list(data if isinstance(data, list) else [], BttvEmote.from_json)

    async def bttv_channel_emotes(self, channel_id: str) -> list[BttvEmote]:
        data = await self._get_json(
            f"{BTTV_BASE_URL}/cached/users/twitch/{channel_id}",
            Flavor.BTTV,
            channel_id,
            missing_ok=True,
        )
        if not isinstance(data, Mapping):
            return []
        entries = list(data.get("channelEmotes") or []) + list(data.get("sharedEmotes") or [])
        return _decode_list(entries, BttvEmote.from_json)

    # ---- FrankerFaceZ ----
    async def ffz_global_emotes(self) -> list[FfzEmote]:
        data = await self._get_json(f"{FFZ_BASE_URL}/set/global", Flavor.FFZ, None)
        if not isinstance(data, Mapping):
            return []
        sets = _nested(data, "sets", Flavor.FFZ, None)
        entries: list[Any] = []
        for set_id in data.get("default_sets") or []:
            emote_set = _nested(sets, str(set_id), Flavor.FFZ, None)
            entries.extend(emote_set.get("emoticons") or [])
        return _decode_list(entries, FfzEmote.from_json)

    async def ffz_channel_emotes(self, channel_name: str) -> list[FfzEmote]:
        data = await self._get_json(
            f"{FFZ_BASE_URL}/room/{channel_name}", Flavor.FFZ, channel_name, missing_ok=True
        )
        if not isinstance(data, Mapping):
            return []
        entries: list[Any] = []
        for emote_set in _nested(data, "sets", Flavor.FFZ, channel_name).values():
            if isinstance(emote_set, Mapping):
                entries.extend(emote_set.get("emoticons") or [])
        return _decode_list(entries, FfzEmote.from_json)

    # ---- 7TV ----
    async def seventv_global_emotes(self) -> list[SevenTvEmote]:
        data = await self._get_json(
            f"{SEVENTV_BASE_URL}/emote-sets/global", Flavor.SEVENTV, None
        )
        if not isinstance(data, Mapping):
            return []
        return _decode_list(data.get("emotes") or [], SevenTvEmote.from_json)

    async def seventv_channel_emotes(self, channel_id: str) -> list[SevenTvEmote]:
        data = await self._get_json(
            f"{SEVENTV_BASE_URL}/users/twitch/{channel_id}",
            Flavor.SEVENTV,
            channel_id,
            missing_ok=True,
        )
        if not isinstance(data, Mapping):
            return []
        emote_set = _nested(data, "emote_set", Flavor.SEVENTV, channel_id)
        return _decode_list(emote_set.get("emotes") or [], SevenTvEmote.from_json)

    # ---- internals ----
    async def _helix(
        self, endpoint: str, params: dict[str, str] | None, *, scope: str | None
    ) -> Any:
        credential = self._credentials.active
        if credential.is_anonymous or not credential.client_id:
            raise CatalogError(
                "Helix catalogs need a client id and OAuth token", Flavor.HELIX.value, scope
            )
        headers = {
            "Authorization": f"Bearer {credential.oauth_token}",
            "Client-Id": credential.client_id,
        }
        return await self._get_json(
            f"{HELIX_BASE_URL}/{endpoint}", Flavor.HELIX, scope, params=params, headers=headers
        )

    async def _get_json(
        self,
        url: str,
        provider: Flavor,
        scope: str | None,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        missing_ok: bool = False,
    ) -> Any:
        context = f"{provider.value} {'global' if scope is None else scope} catalog"

        async def attempt() -> Any:
            async with self.session.get(
                url, headers=headers, params=params, timeout=self._timeout
            ) as resp:
                if missing_ok and resp.status == 404:
                    logging.debug(f"🔍 No {context} (HTTP 404)")
                    return _MISSING
                err = error_for_status(resp.status, context)
                if err is not None:
                    raise err
                return await resp.json()

        async def guarded() -> Any:
            return await handle_api_error(attempt, context)

        try:
            data = await retry_async(
                guarded,
                max_attempts=CATALOG_FETCH_ATTEMPTS,
                max_wait=CATALOG_RETRY_MAX_WAIT,
                retry_on=(NetworkError,),
            )
        except RetryExhaustedError as e:
            raise CatalogError(
                f"{context} unavailable after {e.attempts} attempts: {e.final_exception}",
                provider.value,
                scope,
            ) from e
        except InternalError as e:
            raise CatalogError(f"{context} failed: {e}", provider.value, scope) from e
        return None if data is _MISSING else data


def _nested(data: Mapping, key: str, provider: Flavor, scope: str | None) -> Mapping:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise CatalogError(
            f"Unexpected {provider.value} payload: '{key}' is {type(value).__name__}",
            provider.value,
            scope,
        )
    return value


def _decode_list(entries: Any, decode) -> list:
    out = []
    for entry in entries or []:
        if isinstance(entry, Mapping):
            item = decode(entry)
            if item is not None:
                out.append(item)
    return out


def _helix_emotes(data: Any) -> list[HelixEmote]:
    if not isinstance(data, Mapping):
        return []
    template = str(data.get("template") or "")
    out: list[HelixEmote] = []
    for entry in data.get("data") or []:
        if isinstance(entry, Mapping):
            emote = HelixEmote.from_json(entry, template)
            if emote is not None:
                out.append(emote)
    return out


def _helix_badges(data: Any) -> list[HelixBadge]:
    if not isinstance(data, Mapping):
        return []
    out: list[HelixBadge] = []
    for badge_set in data.get("data") or []:
        if isinstance(badge_set, Mapping):
            out.extend(HelixBadge.from_set(badge_set))
    return out


__all__ = ["CatalogClient"]
