"""Channel identifier normalization."""

from __future__ import annotations


def sanitize(raw: str) -> str:
    """Return the canonical channel key for ``raw``.

    Lowercases and strips the leading ``#`` so that ``"#Foo"``, ``"foo"``
    and ``"FOO"`` all map to ``"foo"``. Never raises.
    """
    # Every leading '#' goes, otherwise "##foo" would need two passes.
    return raw.lower().lstrip("#")


__all__ = ["sanitize"]
