"""Observable values — state that knows who reads it.

Reading an observable inside a running reaction registers that reaction
as an observer. Every write path (Observable.set and the container
mutators) explicitly notifies the observers, which schedules them again.
There is no other way for observed state to change.

Containers built with deep=True convert dicts and lists stored into them
into observable containers as well, so a reaction that walks the whole
tree (see to_plain) is notified about changes at any depth. Containers
compare equal to the plain data they hold.

All state lives in _anchor — instances are thin handles holding an _id.
A node's anchor entries are released when the handle is garbage-collected.
"""

from __future__ import annotations

import weakref
from typing import Callable, TypeVar, Generic, Iterable, Iterator

from chatstate._tracking import current_derivation, schedule, untracked
from chatstate import _anchor

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


class _Node:
    """Shared tracking/notification plumbing for every observable node."""

    __slots__ = ("_id", "__weakref__")

    def _register(self, value: object) -> None:
        self._id = _anchor.new_id()
        _anchor.values[self._id] = value
        _anchor.observers[self._id] = set()
        weakref.finalize(self, _anchor.release, self._id).atexit = False

    def _track(self) -> None:
        derivation = current_derivation.get()
        if derivation is not None:
            _anchor.observers[self._id].add(derivation)
            derivation._dependencies.add(self)

    def _notify(self) -> None:
        for observer in list(_anchor.observers[self._id]):
            schedule(observer)

    def _remove_observer(self, observer) -> None:
        _anchor.observers[self._id].discard(observer)


def _same(old: object, new: object) -> bool:
    if old is new:
        return True
    try:
        with untracked():
            return bool(old == new)
    except RecursionError:
        # Cyclic values: treat as changed and let the codec reject them.
        return False


class Observable(_Node, Generic[T]):
    """A single observable value."""

    __slots__ = ()

    def __init__(self, value: T) -> None:
        self._register(value)

    def get(self) -> T:
        """Read the value. Inside a reaction, registers the dependency."""
        self._track()
        return _anchor.values[self._id]

    def set(self, value: T) -> None:
        """Replace the value. Equal values are not a change."""
        if not _same(_anchor.values[self._id], value):
            _anchor.values[self._id] = value
            self._notify()

    def __repr__(self) -> str:
        return f"Observable({_anchor.values[self._id]!r})"


class _Container(_Node):
    __slots__ = ("_deep",)

    def _wrap(self, value):
        return deep_observable(value) if self._deep else value

    def __eq__(self, other: object) -> bool:
        return to_plain(self) == to_plain(other)

    # Identity hash: nodes live in reactions' dependency sets.
    __hash__ = object.__hash__


class ObservableList(_Container, Generic[T]):
    """An observable list.

    Reads (iteration, indexing, len, ...) register a dependency, every
    mutation notifies observers.
    """

    __slots__ = ()

    def __init__(self, items: Iterable[T] | None = None, *, deep: bool = False) -> None:
        self._deep = deep
        self._register([self._wrap(item) for item in items] if items else [])

    @property
    def _items(self) -> list[T]:
        return _anchor.values[self._id]

    # --- Read operations (track) ---

    def __getitem__(self, index: int) -> T:
        self._track()
        return self._items[index]

    def __len__(self) -> int:
        self._track()
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        self._track()
        return iter(self._items)

    def __contains__(self, item: T) -> bool:
        self._track()
        return item in self._items

    def __bool__(self) -> bool:
        self._track()
        return bool(self._items)

    def __add__(self, other: Iterable[T]) -> list[T]:
        self._track()
        return self._items + list(other)

    def index(self, item: T) -> int:
        self._track()
        return self._items.index(item)

    def count(self, item: T) -> int:
        self._track()
        return self._items.count(item)

    def copy(self) -> list[T]:
        """Plain deep copy."""
        return to_plain(self)

    # --- Write operations (notify) ---

    def append(self, item: T) -> None:
        self._items.append(self._wrap(item))
        self._notify()

    def extend(self, items: Iterable[T]) -> None:
        # Materialize first: items may be this very list.
        wrapped = [self._wrap(item) for item in items]
        self._items.extend(wrapped)
        self._notify()

    def __iadd__(self, items: Iterable[T]) -> ObservableList[T]:
        self.extend(items)
        return self

    def insert(self, index: int, item: T) -> None:
        self._items.insert(index, self._wrap(item))
        self._notify()

    def pop(self, index: int = -1) -> T:
        result = self._items.pop(index)
        self._notify()
        return result

    def remove(self, item: T) -> None:
        self._items.remove(item)
        self._notify()

    def clear(self) -> None:
        self._items.clear()
        self._notify()

    def sort(self, *, key: Callable | None = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._notify()

    def reverse(self) -> None:
        self._items.reverse()
        self._notify()

    def __setitem__(self, index: int, value: T) -> None:
        self._items[index] = self._wrap(value)
        self._notify()

    def __delitem__(self, index: int) -> None:
        del self._items[index]
        self._notify()

    def __repr__(self) -> str:
        return f"ObservableList({self._items!r})"


class ObservableDict(_Container, Generic[KT, VT]):
    """An observable dict. Reads track, writes notify."""

    __slots__ = ()

    def __init__(self, data: dict[KT, VT] | None = None, *, deep: bool = False) -> None:
        self._deep = deep
        self._register({k: self._wrap(v) for k, v in data.items()} if data else {})

    @property
    def _data(self) -> dict[KT, VT]:
        return _anchor.values[self._id]

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        self._track()
        return self._data[key]

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        self._track()
        return self._data.get(key, default)

    def __contains__(self, key: KT) -> bool:
        self._track()
        return key in self._data

    def __len__(self) -> int:
        self._track()
        return len(self._data)

    def __iter__(self) -> Iterator[KT]:
        self._track()
        return iter(self._data)

    def keys(self):
        self._track()
        return self._data.keys()

    def values(self):
        self._track()
        return self._data.values()

    def items(self):
        self._track()
        return self._data.items()

    def __bool__(self) -> bool:
        self._track()
        return bool(self._data)

    def copy(self) -> dict[KT, VT]:
        """Plain deep copy."""
        return to_plain(self)

    # --- Write operations (notify) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        self._data[key] = self._wrap(value)
        self._notify()

    def __delitem__(self, key: KT) -> None:
        del self._data[key]
        self._notify()

    def pop(self, key: KT, *args) -> VT:
        result = self._data.pop(key, *args)
        self._notify()
        return result

    def popitem(self) -> tuple[KT, VT]:
        result = self._data.popitem()
        self._notify()
        return result

    def update(self, other=None, **kwargs) -> None:
        merged = dict(other or {}, **kwargs)
        for key, value in merged.items():
            self._data[key] = self._wrap(value)
        self._notify()

    def clear(self) -> None:
        self._data.clear()
        self._notify()

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        if key not in self._data:
            self._data[key] = self._wrap(default)
            self._notify()
        return self._data[key]

    def __repr__(self) -> str:
        return f"ObservableDict({self._data!r})"


def deep_observable(value, _memo: dict[int, object] | None = None):
    """Convert dicts and lists in value, recursively, into deep observable containers.

    Scalars and objects of other types are returned unchanged, as are
    containers that are already observable. Shared and cyclic references
    are preserved: each source container is converted exactly once.
    """
    if _memo is None:
        _memo = {}
    if isinstance(value, dict):
        if id(value) in _memo:
            return _memo[id(value)]
        node = ObservableDict(deep=True)
        _memo[id(value)] = node
        _anchor.values[node._id] = {k: deep_observable(v, _memo) for k, v in value.items()}
        return node
    if isinstance(value, list):
        if id(value) in _memo:
            return _memo[id(value)]
        node = ObservableList(deep=True)
        _memo[id(value)] = node
        _anchor.values[node._id] = [deep_observable(item, _memo) for item in value]
        return node
    return value


def to_plain(value, _memo: dict[int, object] | None = None):
    """Copy value into plain dicts and lists, reading every observable node.

    Called inside a reaction, this subscribes the reaction to every node
    reachable from value. Cycles are reproduced in the copy rather than
    followed forever.
    """
    if _memo is None:
        _memo = {}
    if isinstance(value, Observable):
        return to_plain(value.get(), _memo)
    if isinstance(value, ObservableDict):
        if id(value) in _memo:
            return _memo[id(value)]
        result: dict = {}
        _memo[id(value)] = result
        for key, item in value.items():
            result[key] = to_plain(item, _memo)
        return result
    if isinstance(value, ObservableList):
        if id(value) in _memo:
            return _memo[id(value)]
        result_list: list = []
        _memo[id(value)] = result_list
        for item in value:
            result_list.append(to_plain(item, _memo))
        return result_list
    return value
