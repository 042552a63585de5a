"""Dependency tracking and scheduling.

While a reaction runs, the reaction is published through a contextvar.
Every observable read during that time registers the reaction as one of
its observers, so the next write to that observable schedules it again.

Scheduled reactions run at once, unless a batch is open (@action,
`with transaction()`, `PersistedStore.batch()`). Then they queue, each
reaction at most once and in first-scheduled order, and run when the
outermost batch closes. A queued reaction that raises does not stop the
rest of the queue; the first error is re-raised after the flush.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from chatstate.reaction import Reaction

# The reaction currently being evaluated, if any.
current_derivation: contextvars.ContextVar[Reaction | None] = contextvars.ContextVar(
    "current_derivation", default=None
)


class _Scheduler:
    """Batch depth plus the queue of reactions waiting for it to reach zero."""

    def __init__(self) -> None:
        self.depth = 0
        self.pending: dict[Reaction, None] = {}

    def enqueue(self, derivation: Reaction) -> None:
        if self.depth:
            self.pending[derivation] = None
        else:
            derivation._run()

    def open(self) -> None:
        self.depth += 1

    def close(self) -> None:
        self.depth -= 1
        if self.depth == 0:
            self.flush()

    def flush(self) -> None:
        error: Exception | None = None
        while self.pending:
            # Running reactions may queue more; drain in rounds.
            queued = list(self.pending)
            self.pending.clear()
            for derivation in queued:
                try:
                    derivation._run()
                except Exception as exc:
                    if error is None:
                        error = exc
        if error is not None:
            raise error


_scheduler = _Scheduler()


def schedule(derivation: Reaction) -> None:
    """Run derivation now, or queue it if a batch is open."""
    _scheduler.enqueue(derivation)


@contextmanager
def batch_scope() -> Iterator[None]:
    """Hold scheduled reactions until the outermost scope exits. Scopes nest."""
    _scheduler.open()
    try:
        yield
    finally:
        _scheduler.close()


@contextmanager
def untracked() -> Iterator[None]:
    """Suspend dependency tracking; reads inside do not subscribe the current reaction."""
    token = current_derivation.set(None)
    try:
        yield
    finally:
        current_derivation.reset(token)


def get_pending_count() -> int:
    """Number of reactions waiting for the current batch to close."""
    return len(_scheduler.pending)
