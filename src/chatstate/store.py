"""PersistedStore — an observable value mirrored into a backing store.

On construction the store reads its key once and seeds the value from the
stored text (or from `initial`). From then on an internal reaction watches
the value and writes the full encoding back after every mutation. Load and
save failures never reach the caller: they go to `on_error` and to the
"chatstate.store" logger, and the in-memory value stays authoritative.

    room = persisted("room", {"id": "r1", "name": "General", "messages": []})
    room.get()["messages"].append({"id": "m1", "text": "hi"})
    # storage now holds the room with one message

With deep=True (the default) dicts and lists inside the value become
ObservableDict / ObservableList, so edits at any depth are saved. With
deep=False only set() saves.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Generic, Iterator, TypeVar

from chatstate._tracking import batch_scope, untracked
from chatstate.backends import BackingStore, get_default_storage
from chatstate.codec import Codec, JsonCodec
from chatstate.errors import (
    LoadAccessFailure,
    LoadDecodeFailure,
    PersistenceFailure,
    SaveAccessFailure,
    SaveEncodeFailure,
)
from chatstate.observable import Observable, deep_observable, to_plain
from chatstate.reaction import Reaction

logger = logging.getLogger("chatstate.store")

T = TypeVar("T")

ErrorHandler = Callable[[PersistenceFailure], None]


class PersistedStore(Generic[T]):
    """A single backing-store key exposed as a live, observable value."""

    def __init__(
        self,
        key: str,
        initial: T,
        *,
        deep: bool = True,
        on_error: ErrorHandler | None = None,
        storage: BackingStore | None = None,
        codec: Codec | None = None,
    ) -> None:
        if not isinstance(key, str):
            raise TypeError(f"key must be a str, not {type(key).__name__}")
        self._key = key
        self._deep = deep
        self._on_error = on_error
        self._storage = storage if storage is not None else get_default_storage()
        self._codec = codec if codec is not None else JsonCodec()

        self._value: Observable[Any] = Observable(self._adopt(self._load(initial)))
        self._primed = False
        self._watcher = Reaction(self._watch)
        self._watcher._run()

    @property
    def key(self) -> str:
        return self._key

    @property
    def deep(self) -> bool:
        return self._deep

    @property
    def disposed(self) -> bool:
        return self._watcher.disposed

    def get(self) -> T:
        """Current value. In deep mode containers come back as observable nodes."""
        return self._value.get()

    def set(self, value: T) -> None:
        """Replace the whole value."""
        self._value.set(self._adopt(value))

    def snapshot(self) -> T:
        """Current value as plain dicts and lists."""
        return to_plain(self._value.get())

    def save(self) -> bool:
        """Write the current value now. Returns False if the save failed."""
        return self._write(self.snapshot())

    @contextmanager
    def batch(self) -> Iterator[T]:
        """Group edits into a single save, made when the outermost batch closes.

        Yields the current value:
            with room.batch() as data:
                data["name"] = "Lobby"
                data["messages"].clear()
        """
        with batch_scope():
            yield self.get()

    def dispose(self) -> None:
        """Stop persisting. The value stays usable in memory."""
        self._watcher.dispose()

    # --- Internals ---

    def _adopt(self, value):
        return deep_observable(value) if self._deep else value

    def _load(self, initial: T) -> T:
        try:
            stored = self._storage.get(self._key)
        except Exception as exc:
            self._report(LoadAccessFailure(self._key), exc, "load")
            return initial
        if not stored:
            return initial
        try:
            value = self._codec.decode(stored)
        except Exception as exc:
            self._report(LoadDecodeFailure(self._key), exc, "load")
            return initial
        logger.debug("Loaded %r from storage", self._key)
        return value

    def _watch(self) -> None:
        # Reading the value (all of it, in deep mode) is what subscribes the watcher.
        value = self._value.get()
        if self._deep:
            snapshot = to_plain(value)
        else:
            with untracked():
                snapshot = to_plain(value)
        if self._primed:
            with untracked():
                self._write(snapshot)
        self._primed = True

    def _write(self, snapshot) -> bool:
        try:
            text = self._codec.encode(snapshot)
        except Exception as exc:
            self._report(SaveEncodeFailure(self._key), exc, "save")
            return False
        try:
            self._storage.set(self._key, text)
        except Exception as exc:
            self._report(SaveAccessFailure(self._key), exc, "save")
            return False
        return True

    def _report(self, failure: PersistenceFailure, cause: BaseException, op: str) -> None:
        failure.__cause__ = cause
        logger.error(
            "Failed to %s %r %s storage (%s): %s",
            op, self._key, "from" if op == "load" else "to", failure.kind, cause,
            exc_info=cause,
        )
        if self._on_error is None:
            return
        try:
            self._on_error(failure)
        except Exception:
            logger.exception("on_error callback failed for %r", self._key)

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "live"
        return f"PersistedStore({self._key!r}, {state})"


def persisted(
    key: str,
    initial: T,
    *,
    deep: bool = True,
    on_error: ErrorHandler | None = None,
    storage: BackingStore | None = None,
    codec: Codec | None = None,
) -> PersistedStore[T]:
    """Create a PersistedStore for key, cold-loading any stored value.

    Options:
        deep: save on nested mutations too, not only on set().
        on_error: called with a PersistenceFailure when a load or save fails.
        storage: backing store (defaults to get_default_storage()).
        codec: serialization adapter (defaults to JsonCodec()).
    """
    return PersistedStore(
        key, initial, deep=deep, on_error=on_error, storage=storage, codec=codec
    )
