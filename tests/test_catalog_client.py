"""Tests for CatalogClient against a fake aiohttp session."""

from __future__ import annotations

import aiohttp
import pytest

from src.chat.credential import Credential, CredentialRotator
from src.constants import BTTV_BASE_URL, FFZ_BASE_URL, HELIX_BASE_URL, SEVENTV_BASE_URL
from src.emotes.catalog import CatalogClient
from src.errors.chat import CatalogError
from src.errors.internal import OAuthError
from tests.fixtures.catalog_fixtures import (
    FakeResponse,
    FakeSession,
    channel_routes,
    global_routes,
)

CRED = Credential(client_id="cid1234567", oauth_token="tok1234567890", username="viewer")


def make_client(session: FakeSession, credential: Credential = CRED) -> CatalogClient:
    return CatalogClient(CredentialRotator(credential), session)  # type: ignore[arg-type]


class TestGlobalCatalogs:
    @pytest.mark.asyncio
    async def test_helix_global_sends_auth_headers(self) -> None:
        session = FakeSession(global_routes())
        emotes = await make_client(session).helix_global_emotes()
        assert [e.name for e in emotes] == ["Kappa", "PartyHat"]
        url, meta = session.requests[0]
        assert url == f"{HELIX_BASE_URL}/chat/emotes/global"
        assert meta["headers"]["Authorization"] == "Bearer tok1234567890"
        assert meta["headers"]["Client-Id"] == "cid1234567"
        assert emotes[0].template.startswith("https://static-cdn")

    @pytest.mark.asyncio
    async def test_bttv_global(self) -> None:
        session = FakeSession(global_routes())
        emotes = await make_client(session).bttv_global_emotes()
        assert [e.code for e in emotes] == [":tf:", "cdPaddle"]

    @pytest.mark.asyncio
    async def test_ffz_global_only_default_sets(self) -> None:
        session = FakeSession(global_routes())
        emotes = await make_client(session).ffz_global_emotes()
        assert [e.name for e in emotes] == ["LilZ"]

    @pytest.mark.asyncio
    async def test_seventv_global(self) -> None:
        session = FakeSession(global_routes())
        emotes = await make_client(session).seventv_global_emotes()
        assert [e.name for e in emotes] == ["peepoHappy"]

    @pytest.mark.asyncio
    async def test_helix_global_badges_flattens_versions(self) -> None:
        session = FakeSession(global_routes())
        badges = await make_client(session).helix_global_badges()
        assert [(b.set_id, b.version) for b in badges] == [("subscriber", "0"), ("premium", "1")]


class TestChannelCatalogs:
    @pytest.mark.asyncio
    async def test_helix_channel_uses_broadcaster_id(self) -> None:
        session = FakeSession(channel_routes())
        emotes = await make_client(session).helix_channel_emotes("22484632")
        assert [e.name for e in emotes] == ["forsenE"]
        assert session.requests[0][1]["params"] == {"broadcaster_id": "22484632"}

    @pytest.mark.asyncio
    async def test_bttv_channel_merges_channel_and_shared(self) -> None:
        session = FakeSession(channel_routes())
        emotes = await make_client(session).bttv_channel_emotes("22484632")
        assert [e.code for e in emotes] == ["forsenCD", "catJAM"]

    @pytest.mark.asyncio
    async def test_ffz_channel_uses_login(self) -> None:
        session = FakeSession(channel_routes())
        emotes = await make_client(session).ffz_channel_emotes("forsen")
        assert [e.name for e in emotes] == ["forsenW"]
        assert session.urls() == [f"{FFZ_BASE_URL}/room/forsen"]

    @pytest.mark.asyncio
    async def test_seventv_channel(self) -> None:
        session = FakeSession(channel_routes())
        emotes = await make_client(session).seventv_channel_emotes("22484632")
        assert [e.name for e in emotes] == ["Kappa"]

    @pytest.mark.asyncio
    async def test_missing_third_party_profile_is_empty(self) -> None:
        session = FakeSession({})
        client = make_client(session)
        assert await client.bttv_channel_emotes("1") == []
        assert await client.seventv_channel_emotes("1") == []
        assert await client.ffz_channel_emotes("nobody") == []

    @pytest.mark.asyncio
    async def test_seventv_user_without_emote_set(self) -> None:
        session = FakeSession({f"{SEVENTV_BASE_URL}/users/twitch/1": {"id": "u", "emote_set": None}})
        assert await make_client(session).seventv_channel_emotes("1") == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_helix_without_token_raises_catalog_error(self) -> None:
        session = FakeSession(global_routes())
        client = make_client(session, Credential())
        with pytest.raises(CatalogError) as excinfo:
            await client.helix_global_emotes()
        assert excinfo.value.provider == "helix"
        assert excinfo.value.scope is None
        assert session.requests == []

    @pytest.mark.asyncio
    async def test_unauthorized_is_not_retried(self) -> None:
        url = f"{HELIX_BASE_URL}/chat/emotes/global"
        session = FakeSession({url: [FakeResponse(401, {}), FakeResponse(200, {"data": []})]})
        with pytest.raises(CatalogError) as excinfo:
            await make_client(session).helix_global_emotes()
        assert isinstance(excinfo.value.__cause__, OAuthError)
        assert len(session.requests) == 1

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self) -> None:
        url = f"{BTTV_BASE_URL}/cached/emotes/global"
        session = FakeSession(
            {
                url: [
                    aiohttp.ClientConnectionError("reset"),
                    FakeResponse(503, {}),
                    FakeResponse(200, [{"id": "1", "code": "ok"}]),
                ]
            }
        )
        emotes = await make_client(session).bttv_global_emotes()
        assert [e.code for e in emotes] == ["ok"]
        assert len(session.requests) == 3

    @pytest.mark.asyncio
    async def test_persistent_server_error_gives_catalog_error(self) -> None:
        url = f"{SEVENTV_BASE_URL}/emote-sets/global"
        session = FakeSession({url: [FakeResponse(500, {})]})
        with pytest.raises(CatalogError) as excinfo:
            await make_client(session).seventv_global_emotes()
        assert excinfo.value.provider == "seventv"
        assert len(session.requests) == 3

    @pytest.mark.asyncio
    async def test_invalid_json_is_parsing_failure(self) -> None:
        url = f"{FFZ_BASE_URL}/set/global"
        session = FakeSession({url: [FakeResponse(200, ValueError("bad json"))]})
        with pytest.raises(CatalogError):
            await make_client(session).ffz_global_emotes()
        assert len(session.requests) == 1

    @pytest.mark.asyncio
    async def test_rotated_credential_used_for_next_request(self) -> None:
        session = FakeSession(global_routes())
        rotator = CredentialRotator(CRED)
        client = CatalogClient(rotator, session)  # type: ignore[arg-type]
        await rotator.replace(Credential(client_id="cid1234567", oauth_token="newtoken1234"))
        await client.helix_global_emotes()
        assert session.requests[0][1]["headers"]["Authorization"] == "Bearer newtoken1234"
