"""Chat error hierarchy for the multiplexer, transport and catalog loaders.

All exceptions accept optional context parameters for better error tracking.
"""


class ChatError(Exception):
    """Base exception for all chat-related errors.

    Args:
        message (str): Error message.
        channel (str | None): Optional sanitized channel associated with the error.
        operation_type (str | None): Optional operation type (e.g., 'join', 'connect').

    Example:
        >>> raise ChatError("Generic error", channel="forsen", operation_type="join")
    """

    def __init__(
        self,
        message: str,
        channel: str | None = None,
        operation_type: str | None = None,
    ) -> None:
        super().__init__(message)
        self.channel = channel
        self.operation_type = operation_type


class ChatConnectionError(ChatError):
    """Raised when the chat transport fails to connect, join or stay open."""


class CredentialRotationError(ChatError):
    """Raised when a replacement credential cannot produce a working connection.

    The multiplexer keeps its previous connection and subscriber bookkeeping,
    so retrying with a corrected credential needs no re-registration.
    """


class CatalogError(ChatError):
    """Raised when one provider catalog cannot be fetched or decoded.

    Args:
        message (str): Error message.
        provider (str): Provider flavor name (helix, bttv, ffz, seventv).
        scope (str | None): Channel the catalog belongs to; None for global.
    """

    def __init__(self, message: str, provider: str, scope: str | None = None) -> None:
        super().__init__(message, channel=scope, operation_type="load_catalog")
        self.provider = provider
        self.scope = scope


__all__ = [
    "ChatError",
    "ChatConnectionError",
    "CredentialRotationError",
    "CatalogError",
]
