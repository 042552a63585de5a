"""Reactions — side effects re-run by observable changes.

A Reaction runs its function with dependency tracking enabled. Every
observable read during the run becomes a dependency; a write to any of
them runs the function again, re-tracking from scratch each time so the
dependency set follows the data (e.g. items appended to a list).

All state lives in _anchor — instances are thin handles holding an _id.
"""

from __future__ import annotations

from typing import Callable
from chatstate._tracking import current_derivation
from chatstate import _anchor


class Reaction:
    """A side effect that re-runs whenever an observable it read changes."""

    __slots__ = ("_id",)

    def __init__(self, fn: Callable[[], None]) -> None:
        self._id = _anchor.new_id()
        _anchor.derivation_fns[self._id] = fn
        _anchor.dependencies[self._id] = set()
        _anchor.disposed[self._id] = False

    @property
    def _fn(self) -> Callable[[], None]:
        return _anchor.derivation_fns[self._id]

    @property
    def _dependencies(self) -> set:
        return _anchor.dependencies[self._id]

    @property
    def disposed(self) -> bool:
        return _anchor.disposed[self._id]

    def _untrack(self) -> None:
        for dep in _anchor.dependencies[self._id]:
            dep._remove_observer(self)
        _anchor.dependencies[self._id].clear()

    def _run(self) -> None:
        if _anchor.disposed[self._id]:
            return
        self._untrack()

        token = current_derivation.set(self)
        try:
            self._fn()
        finally:
            current_derivation.reset(token)

    def dispose(self) -> None:
        """Stop this reaction and disconnect it from its dependencies."""
        if _anchor.disposed[self._id]:
            return
        _anchor.disposed[self._id] = True
        self._untrack()
        _anchor.forget(self._id)

    def __repr__(self) -> str:
        state = "disposed" if _anchor.disposed[self._id] else "active"
        name = getattr(_anchor.derivation_fns.get(self._id), "__name__", "?")
        return f"Reaction({name}, {state})"


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn now, then again whenever an observable it read changes.

    Returns the Reaction; call .dispose() to stop it.

    Usage:
        counter = Observable(0)
        log = []

        r = autorun(lambda: log.append(counter.get()))
        # log == [0]

        counter.set(1)
        # log == [0, 1]

        r.dispose()
        counter.set(2)
        # log == [0, 1]
    """
    r = Reaction(fn)
    r._run()
    return r
