"""Configuration package exports."""

from .loader import load_config  # noqa: F401
from .model import CompanionConfig  # noqa: F401

__all__ = ["CompanionConfig", "load_config"]
