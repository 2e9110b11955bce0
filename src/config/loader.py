"""Configuration loading: JSON file plus ``TWITCH_*`` environment overrides."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .model import CompanionConfig

# Environment variable -> config field.
ENV_OVERRIDES = {
    "TWITCH_CLIENT_ID": "client_id",
    "TWITCH_OAUTH_TOKEN": "oauth_token",
    "TWITCH_USERNAME": "username",
    "TWITCH_USER_ID": "user_id",
    "TWITCH_CHANNELS": "channels",
}

DEFAULT_CONFIG_FILE = "chat_companion.json"


def _read_file(path: str) -> dict[str, Any]:
    if not os.path.exists(path):
        logging.info(f"📁 No config file at {path}, using environment and defaults")
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Config file {path} is not valid JSON: {e}") from e
    if not isinstance(data, Mapping):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return dict(data)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            out[field_name] = value
    return out


def load_config(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> CompanionConfig:
    """Load the companion configuration.

    ``path`` defaults to ``$TWITCH_CONF_FILE`` or ``chat_companion.json``.
    Environment values override file values.

    Raises:
        ValueError: The file is unreadable JSON or the merged values fail validation.
    """
    env = os.environ if environ is None else environ
    path = path or env.get("TWITCH_CONF_FILE", DEFAULT_CONFIG_FILE)
    data = _read_file(path)
    data.update(_env_overrides(env))
    try:
        config = CompanionConfig.from_dict(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
    logging.debug(
        f"⚙️ Config loaded channels={len(config.channels)} anonymous={not config.oauth_token}"
    )
    return config


__all__ = ["DEFAULT_CONFIG_FILE", "ENV_OVERRIDES", "load_config"]
