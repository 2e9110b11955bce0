"""Thin asynchronous Twitch Helix API client.

Wraps the one endpoint the companion needs: login -> user id resolution
(channel catalogs are keyed by numeric id). Token validation lives on
:meth:`src.chat.credential.Credential.validate`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import aiohttp

from ..chat.sanitize import sanitize
from ..constants import CATALOG_FETCH_TIMEOUT, HELIX_BASE_URL
from ..errors.handling import error_for_status, handle_api_error


class TwitchAPI:
    """Asynchronous client for Twitch Helix API endpoints.

    Attributes:
        BASE_URL (str): The base URL for Twitch Helix API.
    """

    BASE_URL = HELIX_BASE_URL

    def __init__(self, session: aiohttp.ClientSession):
        """Initialize the TwitchAPI client.

        Args:
            session (aiohttp.ClientSession): The aiohttp session to use for requests.

        Raises:
            ValueError: If session is not provided.
        """
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=CATALOG_FETCH_TIMEOUT)

    async def get_users_by_login(
        self, *, access_token: str, client_id: str, logins: list[str]
    ) -> dict[str, str]:
        """Resolve Twitch login names to user IDs.

        Args:
            access_token (str): OAuth access token.
            client_id (str): Twitch application client ID.
            logins (list[str]): List of login names to resolve.

        Returns:
            dict[str, str]: Mapping of lowercase login names to user IDs. Unknown logins are omitted.

        Raises:
            OAuthError: If Helix rejects the credential.
            NetworkError: If the request fails or the server errors.

        Example:
            >>> api = TwitchAPI(session)
            >>> await api.get_users_by_login(
            ...     access_token="token", client_id="cid", logins=["User1", "user1"]
            ... )
            {'user1': '12345'}
        """
        if not logins:
            return {}
        deduped = self._dedupe_logins(logins)
        headers = self._auth_headers(access_token, client_id)
        out: dict[str, str] = {}
        url = f"{self.BASE_URL}/users"
        for part in self._chunk(deduped, 100):
            params_list = [("login", c) for c in part]

            async def operation(params=params_list):
                async with self._session.get(
                    url, headers=headers, params=params, timeout=self._timeout
                ) as resp:
                    logging.debug(f"🔍 Twitch API get_users status={resp.status} logins={len(params)}")
                    err = error_for_status(resp.status, "Twitch get users")
                    if err is not None:
                        raise err
                    return await resp.json()

            data = await handle_api_error(operation, "Twitch get users")
            for entry in self._rows(data):
                login = entry.get("login")
                uid = entry.get("id")
                if isinstance(login, str) and isinstance(uid, str):
                    out[login.lower()] = uid
        return out

    @staticmethod
    def _dedupe_logins(logins: list[str]) -> list[str]:
        """Lowercase, strip ``#`` and drop duplicates, preserving order."""
        seen: set[str] = set()
        out: list[str] = []
        for raw in logins:
            ll = sanitize(raw.strip())
            if ll and ll not in seen:
                seen.add(ll)
                out.append(ll)
        return out

    @staticmethod
    def _chunk(seq: list[str], size: int) -> Iterable[list[str]]:
        for i in range(0, len(seq), size):
            yield seq[i : i + size]

    @staticmethod
    def _auth_headers(access_token: str, client_id: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Client-Id": client_id,
        }

    @staticmethod
    def _rows(data: Any) -> list[dict[str, Any]]:
        if not isinstance(data, dict):
            return []
        rows = data.get("data")
        if isinstance(rows, list):
            return [r for r in rows if isinstance(r, dict)]
        return []
