"""Event logger used by the chat and catalog layers."""

from __future__ import annotations

import logging
import os


class EventLogger:
    """Structured event logger.

    Events are named ``<domain>_<action>`` and rendered through the template
    catalog. Handlers are not attached here; output goes through the root
    logger configured by :class:`src.logging_config.LoggerConfigurator`.
    """

    def __init__(self, name: str = "chat_companion") -> None:
        self._event_name_width = 32
        self.logger = logging.getLogger(name)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        human_text = human
        if human_text is None:
            # Local import to avoid cyclic import issues during module init.
            from .event_catalog import EVENT_TEMPLATES

            template = EVENT_TEMPLATES.get((domain, action))
            if template:
                try:
                    human_text = template.format(**kwargs)
                except (KeyError, IndexError, ValueError):
                    human_text = template
            else:
                human_text = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
                kwargs.setdefault("derived", True)
        self._log(level, event_name, human_text, exc_info=exc_info, **kwargs)

    def _log(
        self,
        level: int,
        event_name: str,
        human_text: str,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        kw: dict[str, object] = dict(kwargs)
        user, channel = self._extract_reserved(kw)
        prefix = self._build_prefix(user, channel)
        if self._is_debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human_text, kw)
        else:
            msg = f"{prefix} {human_text}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @staticmethod
    def _extract_reserved(kwargs: dict[str, object]) -> tuple[str | None, str | None]:
        user_o = kwargs.pop("user", None)
        channel_o = kwargs.get("channel")
        user = user_o if isinstance(user_o, str) else None
        channel = channel_o if isinstance(channel_o, str) else None
        return user, channel

    @staticmethod
    def _build_prefix(user: str | None, channel: str | None) -> str:
        user_label = user or "system"
        core = f"{user_label}#{channel}" if channel else user_label
        padded = core.ljust(24)[:24]
        return f"[{padded}]"

    def _build_debug_message(
        self,
        event_name: str,
        prefix: str,
        human_text: str,
        kwargs: dict[str, object],
    ) -> str:
        width = self._event_name_width
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:
            ev = event_name[: width - 1] + "…"
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        base = f"{ev} {prefix} {human_text}"
        if context:
            base = f"{base} ({context})"
        return base


logger = EventLogger()
