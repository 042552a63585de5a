"""Grouped edits: @action and transaction().

Edits made inside a group do not trigger reactions one by one. Every
reaction they schedule runs once, after the outermost group ends. For a
PersistedStore that means one save of the final value per group, and any
failure of that save is reported once, when it happens.

PersistedStore.batch() is the same group, scoped to a single store.
"""

from __future__ import annotations

import functools
from typing import TypeVar, Callable, ParamSpec

from chatstate._tracking import batch_scope

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: fn's edits are saved together when it returns (or raises).

    Usage:
        @action
        def post(room, *messages):
            for message in messages:
                room.get()["messages"].append(message)
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with batch_scope():
            return fn(*args, **kwargs)

    return wrapper


def transaction():
    """Context manager form of @action.

    Usage:
        with transaction():
            room.get()["name"] = "Lobby"
            prefs.set({"theme": "dark"})
        # one save for room, one for prefs
    """
    return batch_scope()
