from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..chat.credential import Credential
from ..chat.sanitize import sanitize
from ..constants import MESSAGE_RING_LIMIT, STORE_FILE


class CompanionConfig(BaseModel):
    """Runtime configuration for the chat companion.

    Attributes:
        client_id: Twitch application client ID.
        oauth_token: User OAuth token; empty means anonymous read-only chat.
        username: Login the token belongs to.
        user_id: Numeric id of ``username``.
        channels: Channels opened at startup, sanitized, deduplicated and sorted.
        store_path: JSON file used for the persisted channel list.
        ring_limit: Messages kept per channel.
        replay_on_rotation: Re-join subscribed channels right after a
            credential rotation instead of waiting for resubscription.
        load_badges: Fetch Helix badge catalogs next to emote catalogs.
    """

    client_id: str = ""
    oauth_token: str = ""
    username: str = ""
    user_id: str = ""
    channels: list[str] = Field(default_factory=list)
    store_path: str = STORE_FILE
    ring_limit: int = MESSAGE_RING_LIMIT
    replay_on_rotation: bool = False
    load_badges: bool = True

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        """Sanitize channel names, drop empties, dedup and sort."""
        if isinstance(v, str):
            v = [part for part in v.replace(";", ",").split(",")]
        if not isinstance(v, list):
            raise ValueError("channels must be a list")
        validated = []
        for c in v:
            if isinstance(c, str):
                key = sanitize(c.strip())
                if key:
                    validated.append(key)
        return sorted(dict.fromkeys(validated))

    @field_validator("username", mode="before")
    @classmethod
    def validate_username(cls, v: Any) -> str:
        return str(v or "").strip().lower()

    @field_validator("store_path")
    @classmethod
    def validate_store_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("store_path cannot be empty")
        return v.strip()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CompanionConfig:
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def credential(self) -> Credential:
        return Credential(
            client_id=self.client_id,
            oauth_token=self.oauth_token,
            username=self.username,
            user_id=self.user_id,
        )


__all__ = ["CompanionConfig"]
