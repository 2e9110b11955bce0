"""
Configuration constants for the Twitch chat companion.

This module contains all configurable constants used throughout the application.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Catalog fetching (provider HTTP endpoints)
CATALOG_FETCH_TIMEOUT = _get_env_float(
    "CATALOG_FETCH_TIMEOUT", 15.0
)  # Total seconds allowed for a single provider request
CATALOG_FETCH_ATTEMPTS = _get_env_int(
    "CATALOG_FETCH_ATTEMPTS", 3
)  # Attempts per provider request for transient network errors
CATALOG_RETRY_MAX_WAIT = _get_env_float(
    "CATALOG_RETRY_MAX_WAIT", 10.0
)  # Upper bound of the exponential backoff between attempts

# Chat transport
CHAT_CONNECT_TIMEOUT = _get_env_float(
    "CHAT_CONNECT_TIMEOUT", 15.0
)  # Seconds to wait for the chat WebSocket handshake
CHAT_WS_URL = os.getenv("CHAT_WS_URL", "wss://irc-ws.chat.twitch.tv:443")
CHAT_ANONYMOUS_PREFIX = "justinfan"

# Message ring
MESSAGE_RING_LIMIT = _get_env_int(
    "MESSAGE_RING_LIMIT", 500
)  # Messages retained per channel; <= 0 disables the bound

# Provider endpoints
HELIX_BASE_URL = "https://api.twitch.tv/helix"
TOKEN_VALIDATE_URL = "https://id.twitch.tv/oauth2/validate"
BTTV_BASE_URL = "https://api.betterttv.net/3"
FFZ_BASE_URL = "https://api.frankerfacez.com/v1"
SEVENTV_BASE_URL = "https://7tv.io/v3"

# CDN templates
TWITCH_EMOTE_V2 = "https://static-cdn.jtvnw.net/emoticons/v2"
HELIX_EMOTE_TEMPLATE = (
    TWITCH_EMOTE_V2 + "/{{id}}/{{format}}/{{theme_mode}}/{{scale}}"
)
BTTV_CDN_TEMPLATE = "https://cdn.betterttv.net/emote/{id}/3x.{image_type}"

# Persistence
STORE_FILE = os.getenv("CHAT_COMPANION_STORE", "chat_companion_store.json")
