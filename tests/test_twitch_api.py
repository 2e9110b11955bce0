from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import pytest

from src.api.twitch import TwitchAPI
from src.errors.internal import NetworkError, OAuthError


class _Resp:
    def __init__(self, status: int, payload: dict[str, Any] | list[Any] | None, headers: dict[str, str] | None = None):
        self.status = status
        self._payload = payload
        self.headers = headers or {}

    async def json(self) -> Any:  # noqa: D401
        await asyncio.sleep(0)
        return self._payload


class _Session:
    def __init__(self):
        self.requests: list[tuple[str, dict[str, Any]]] = []
        self._queue: list[_Resp | Exception] = []

    def queue(self, resp: _Resp | Exception) -> None:
        self._queue.append(resp)

    def get(self, url: str, headers=None, params=None, timeout=None):  # noqa: D401
        self.requests.append((url, {"headers": headers, "params": params, "timeout": timeout}))
        resp = self._queue.pop(0)

        class _CM:
            async def __aenter__(self_inner):  # noqa: ANN001
                if isinstance(resp, Exception):
                    raise resp
                return resp

            async def __aexit__(self_inner, exc_type, exc, tb):  # noqa: ANN001
                return False

        return _CM()


def test_get_users_by_login_headers_and_params() -> None:
    session = _Session()
    session.queue(_Resp(200, {"data": [{"login": "forsen", "id": "22484632"}]}))
    api = TwitchAPI(session)  # type: ignore[arg-type]
    mapping = asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=["#Forsen"]))
    if mapping != {"forsen": "22484632"}:
        raise AssertionError(f"Unexpected mapping {mapping}")
    url, meta = session.requests[0]
    if not url.endswith("/helix/users"):
        raise AssertionError("URL mismatch")
    h = meta["headers"]
    if h["Authorization"] != "Bearer AT" or h["Client-Id"] != "CID":
        raise AssertionError("Auth headers not set correctly")
    if meta["params"] != [("login", "forsen")]:
        raise AssertionError("Login params not normalized")
    if not isinstance(meta["timeout"], aiohttp.ClientTimeout):
        raise AssertionError("Request timeout not applied")


def test_get_users_by_login_dedup_and_chunk() -> None:
    session = _Session()
    api = TwitchAPI(session)  # type: ignore[arg-type]

    def make_payload(logins):
        return {"data": [{"login": l, "id": f"id_{l}"} for l in logins]}

    # Queue: expect 3 chunks (250 total -> 100 + 100 + 50)
    session.queue(_Resp(200, make_payload([f"user{i}" for i in range(100)])))
    session.queue(_Resp(200, make_payload([f"user{i}" for i in range(100, 200)])))
    session.queue(_Resp(200, make_payload([f"user{i}" for i in range(200, 250)])))

    big_list = [f"User{i}" for i in range(250)] + ["user0", "USER1", " ", "#"]
    mapping = asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=big_list))
    if len(mapping) != 250:
        raise AssertionError(f"Expected 250 unique mappings, got {len(mapping)}")
    if mapping.get("user5") != "id_user5":
        raise AssertionError("Missing expected user mapping")
    if len(session.requests) != 3:
        raise AssertionError("Expected 3 chunked requests for 250 users")


def test_get_users_by_login_empty_input_makes_no_request() -> None:
    session = _Session()
    api = TwitchAPI(session)  # type: ignore[arg-type]
    if asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=[])) != {}:
        raise AssertionError("Expected empty mapping")
    if session.requests:
        raise AssertionError("No request expected")


def test_get_users_by_login_skips_malformed_rows() -> None:
    session = _Session()
    session.queue(_Resp(200, {"data": [{"login": "a"}, "junk", {"login": "b", "id": "2"}]}))
    api = TwitchAPI(session)  # type: ignore[arg-type]
    mapping = asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=["a", "b"]))
    if mapping != {"b": "2"}:
        raise AssertionError(f"Unexpected mapping {mapping}")


def test_get_users_by_login_errors() -> None:
    session = _Session()
    session.queue(_Resp(401, {"status": 401}))
    session.queue(aiohttp.ClientConnectionError("reset"))
    api = TwitchAPI(session)  # type: ignore[arg-type]
    with pytest.raises(OAuthError):
        asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=["a"]))
    with pytest.raises(NetworkError):
        asyncio.run(api.get_users_by_login(access_token="AT", client_id="CID", logins=["a"]))


def test_dedupe_logins_uses_channel_keys() -> None:
    deduped = TwitchAPI._dedupe_logins([" ##Forsen ", "forsen", "XQC", "#", ""])
    if deduped != ["forsen", "xqc"]:
        raise AssertionError(f"Unexpected logins {deduped}")


def test_session_required() -> None:
    with pytest.raises(ValueError):
        TwitchAPI(None)  # type: ignore[arg-type]
