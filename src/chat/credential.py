"""Chat credential model and rotation hooks."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp
from pydantic import BaseModel, ConfigDict, field_validator

from ..constants import CATALOG_FETCH_TIMEOUT, TOKEN_VALIDATE_URL
from ..errors.internal import OAuthError
from ..logs.logger import logger

CredentialHook = Callable[["Credential"], Awaitable[None]]


class Credential(BaseModel):
    """Twitch application client id plus a user OAuth token.

    ``username`` and ``user_id`` are optional; without ``oauth_token`` the chat
    transport logs in anonymously and can only read.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = ""
    oauth_token: str = ""
    username: str = ""
    user_id: str = ""

    @field_validator("oauth_token", mode="before")
    @classmethod
    def _strip_oauth_prefix(cls, v: Any) -> str:
        token = str(v or "").strip()
        if token.lower().startswith("oauth:"):
            token = token[len("oauth:") :]
        return token

    @field_validator("client_id", "username", "user_id", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return str(v or "").strip()

    @property
    def is_anonymous(self) -> bool:
        return not self.oauth_token

    @classmethod
    def parse(cls, raw: str | Mapping[str, Any]) -> Credential:
        """Build a credential from a mapping, a JSON object or a ``k=v;`` string.

        Bare parts without ``=`` in the ``k=v;`` form land under ``_unknown``
        and are ignored.
        """
        if isinstance(raw, Mapping):
            return cls.model_validate(_known_fields(raw))
        text = raw.strip()
        if text.startswith("{"):
            try:
                data = json.loads(text)
            except ValueError as e:
                raise ValueError(f"Invalid credential JSON: {e}") from e
            if not isinstance(data, Mapping):
                raise ValueError("Credential JSON must be an object")
            return cls.model_validate(_known_fields(data))
        return cls.model_validate(_known_fields(_parse_pairs(text)))

    def masked(self) -> str:
        """Short form safe for logs."""
        tail = self.oauth_token[-4:] if len(self.oauth_token) >= 8 else ""
        who = self.username or "anonymous"
        return f"{who} (token …{tail})" if tail else who

    async def validate(self, session: aiohttp.ClientSession) -> bool:
        """Check the token against Twitch's validate endpoint.

        Returns True only on HTTP 200. Network failures count as invalid.
        """
        if self.is_anonymous:
            return False
        headers = {"Authorization": f"OAuth {self.oauth_token}"}
        try:
            async with session.get(
                TOKEN_VALIDATE_URL,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=CATALOG_FETCH_TIMEOUT),
            ) as resp:
                valid = resp.status == 200
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            logging.debug(f"🔍 Token validation request failed: {type(e).__name__}: {e}")
            return False
        logger.log_event(
            "credential",
            "validated" if valid else "invalid",
            level=logging.DEBUG if valid else logging.WARNING,
            user=self.username or None,
        )
        return valid


def _parse_pairs(text: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for part in text.rstrip().rstrip(";").split(";"):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep or not value:
            pairs["_unknown"] = part
            continue
        pairs[key.strip()] = value.strip()
    return pairs


def _known_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    known = Credential.model_fields
    return {k: v for k, v in data.items() if k in known}


class CredentialRotator:
    """Holds the active credential and fans replacements out to hooks.

    Hooks run in registration order. The active credential only changes after
    every hook accepted the replacement; the first failing hook's exception
    propagates to the caller and later hooks are not run.
    """

    def __init__(self, credential: Credential | None = None) -> None:
        self._active = credential or Credential()
        self._hooks: list[CredentialHook] = []

    @property
    def active(self) -> Credential:
        return self._active

    def add_hook(self, hook: CredentialHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: CredentialHook) -> None:
        if hook in self._hooks:
            self._hooks.remove(hook)

    async def replace(
        self,
        credential: Credential,
        *,
        validate: bool = False,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        if validate:
            if session is None:
                raise ValueError("session required to validate a credential")
            if not await credential.validate(session):
                raise OAuthError(
                    f"Credential for {credential.masked()} failed validation",
                    data={"username": credential.username},
                )
        for hook in list(self._hooks):
            await hook(credential)
        self._active = credential
        logger.log_event(
            "credential",
            "rotated",
            user=credential.username or None,
            hooks=len(self._hooks),
        )


__all__ = ["Credential", "CredentialHook", "CredentialRotator"]
