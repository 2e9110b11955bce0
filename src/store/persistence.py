"""Small JSON key/value store with per-value codecs.

``JsonStore`` holds every key in one JSON document written atomically
(temp file + ``os.replace``). ``PersistentValue`` binds one key to a typed
in-memory value, loading it once and writing through on every ``set``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from ..errors.internal import StorageError

T = TypeVar("T")


def identity(value: Any) -> Any:
    return value


class JsonStore:
    """Asynchronous JSON file store guarded by an ``asyncio.Lock``.

    File I/O runs in the default executor. A corrupted file is moved aside to
    ``<path>.corrupted`` and treated as empty.
    """

    def __init__(self, path: str) -> None:
        if not path:
            raise ValueError("store path cannot be empty")
        self.path = path
        self._lock = asyncio.Lock()

    async def read(self, key: str) -> tuple[bool, Any]:
        """Return ``(found, raw_value)`` for ``key``."""
        async with self._lock:
            data = await self._load()
        if key in data:
            return True, data[key]
        return False, None

    async def write(self, key: str, raw_value: Any) -> None:
        async with self._lock:
            data = await self._load()
            data[key] = raw_value
            await self._save(data)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            data = await self._load()
            if key not in data:
                return False
            del data[key]
            await self._save(data)
            return True

    async def keys(self) -> list[str]:
        async with self._lock:
            return sorted(await self._load())

    async def _load(self) -> dict[str, Any]:
        loop = asyncio.get_running_loop()

        def _read_file() -> Any:
            if not os.path.exists(self.path):
                return {}
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
            if not content.strip():
                return {}
            return json.loads(content)

        try:
            data = await loop.run_in_executor(None, _read_file)
        except json.JSONDecodeError as e:
            logging.warning(f"⚠️ Corrupted store file {self.path}, starting empty: {e}")
            try:
                os.replace(self.path, f"{self.path}.corrupted")
            except OSError as backup_error:
                logging.debug(f"🔍 Could not back up corrupted store: {backup_error}")
            return {}
        except OSError as e:
            raise StorageError(f"Failed to read store {self.path}: {e}") from e
        if not isinstance(data, dict):
            logging.warning(f"⚠️ Store file {self.path} is not a JSON object, ignoring it")
            return {}
        return data

    async def _save(self, data: dict[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        directory = os.path.dirname(os.path.abspath(self.path))

        def _write_atomic() -> None:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=directory, prefix=os.path.basename(self.path) + ".tmp", suffix=".json"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.path)
            except BaseException:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        try:
            await loop.run_in_executor(None, _write_atomic)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write store {self.path}: {e}") from e


class PersistentValue(Generic[T]):
    """A value mirrored to one key of a :class:`JsonStore`.

    ``decode`` turns the stored JSON value into ``T`` and ``encode`` does the
    reverse; both default to identity. ``load`` reads the store only once.
    A stored value that fails to decode falls back to ``default``.
    """

    def __init__(
        self,
        store: JsonStore,
        key: str,
        default: T,
        decode: Callable[[Any], T] = identity,
        encode: Callable[[T], Any] = identity,
    ) -> None:
        self.store = store
        self.key = key
        self._default = default
        self._decode = decode
        self._encode = encode
        self._value: T = default
        self._loaded = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> T:
        if self._loaded:
            return self._value
        found, raw = await self.store.read(self.key)
        if found:
            try:
                self._value = self._decode(raw)
            except (TypeError, ValueError) as e:
                logging.warning(f"⚠️ Stored value for '{self.key}' is unreadable, using default: {e}")
                self._value = self._default
        self._loaded = True
        return self._value

    async def set(self, value: T) -> None:
        self._value = value
        self._loaded = True
        await self.store.write(self.key, self._encode(value))

    async def update(self, fn: Callable[[T], T]) -> T:
        await self.load()
        new_value = fn(self._value)
        await self.set(new_value)
        return new_value


def decode_channel_set(raw: Any) -> set[str]:
    if not isinstance(raw, list):
        raise TypeError(f"expected a list of channels, got {type(raw).__name__}")
    return {str(c) for c in raw if isinstance(c, str) and c}


def encode_channel_set(channels: Iterable[str]) -> list[str]:
    return sorted(channels)


# (decode, encode) pair for a set of channel names stored as a JSON list.
channel_set_codec: tuple[Callable[[Any], set[str]], Callable[[set[str]], list[str]]] = (
    decode_channel_set,
    encode_channel_set,
)


__all__ = [
    "JsonStore",
    "PersistentValue",
    "channel_set_codec",
    "decode_channel_set",
    "encode_channel_set",
    "identity",
]
