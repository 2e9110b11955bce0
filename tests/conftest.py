import os

import pytest

# Set test-friendly defaults for constants that affect test performance.
# Must run before any src module reads src.constants.
os.environ.setdefault("CATALOG_RETRY_MAX_WAIT", "0")
os.environ.setdefault("CATALOG_FETCH_ATTEMPTS", "3")
os.environ.setdefault("CHAT_CONNECT_TIMEOUT", "2")
os.environ.setdefault("MESSAGE_RING_LIMIT", "500")


@pytest.fixture
def store_path(tmp_path):
    """Path for a throwaway JSON store."""
    return str(tmp_path / "store.json")


@pytest.fixture(autouse=True)
def _no_debug_env(monkeypatch):
    """Keep log formatting deterministic regardless of the caller's DEBUG."""
    monkeypatch.delenv("DEBUG", raising=False)
