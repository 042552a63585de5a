"""Node registry — the raw data behind every reactive handle.

Observables and reactions are thin objects that only hold an integer id.
Their values, observer sets and dependency sets live here, in plain dicts
keyed by that id, so a handle can be copied or passed around freely while
the graph itself stays in one place.
"""

import itertools

# Observable nodes
values: dict[int, object] = {}
observers: dict[int, set] = {}  # node_id -> set of reactions

# Reaction nodes
dependencies: dict[int, set] = {}  # reaction_id -> set of observable nodes
derivation_fns: dict[int, object] = {}
disposed: dict[int, bool] = {}

_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)


def forget(node_id: int) -> None:
    """Drop the reaction-side entries for node_id. Disposed flag is kept."""
    dependencies.pop(node_id, None)
    derivation_fns.pop(node_id, None)


def release(node_id: int) -> None:
    """Drop the observable-side entries for node_id once its handle is gone."""
    values.pop(node_id, None)
    observers.pop(node_id, None)
