"""Backing stores — synchronous key -> text persistence.

A backing store is the slot layer under PersistedStore: get() returns the
stored text or None, set() stores text or raises. Two implementations
ship here; anything following the BackingStore interface works.
"""

from __future__ import annotations

import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path


class BackingStore(ABC):
    """Interface for key -> text storage. Failures are raised, not returned."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the text stored under key, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous text."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns whether it existed."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently stored."""


class MemoryStorage(BackingStore):
    """Process-local storage in a dict. Nothing survives the process."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._data)

    def __repr__(self) -> str:
        return f"MemoryStorage({len(self._data)} keys)"


class JsonFileStorage(BackingStore):
    """All keys in one JSON object file, rewritten atomically on each set.

    A missing file reads as empty storage. A file that exists but is not a
    JSON object makes get() raise, which the store reports as a load
    access failure.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> bool:
        with self._lock:
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())

    def __repr__(self) -> str:
        return f"JsonFileStorage({str(self.path)!r})"


# ─── Default storage ─────────────────────────────────────────────────────────
_default_storage: BackingStore = MemoryStorage()


def set_default_storage(storage: BackingStore) -> None:
    """Set the storage used by stores created without an explicit one.

    Call once at startup:
        chatstate.set_default_storage(JsonFileStorage("~/.chat/state.json"))
    """
    global _default_storage
    _default_storage = storage


def get_default_storage() -> BackingStore:
    return _default_storage
