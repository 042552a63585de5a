"""Serialization adapters — value <-> text for the backing store."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Protocol


class Codec(Protocol):
    """Anything with encode(value) -> str and decode(text) -> value.

    Both methods raise on failure; the store turns those exceptions into
    SaveEncodeFailure / LoadDecodeFailure.
    """

    def encode(self, value: Any) -> str: ...

    def decode(self, text: str) -> Any: ...


class JsonCodec:
    """JSON codec for plain data: dicts, lists, str, numbers, bool, None.

    Tuples encode as arrays and dates as ISO-8601 strings (decoding leaves
    them as strings; subclass and override decode to revive them).
    Cyclic values and NaN/infinities raise ValueError. Non-str dict keys
    raise TypeError instead of coming back as strings, as does anything
    else that is not plain data.
    """

    def __init__(self, *, indent: int | None = None, sort_keys: bool = False) -> None:
        self.indent = indent
        self.sort_keys = sort_keys

    def encode(self, value: Any) -> str:
        _check_keys(value, set())
        return json.dumps(
            value,
            default=self._default,
            allow_nan=False,
            ensure_ascii=False,
            indent=self.indent,
            sort_keys=self.sort_keys,
        )

    def decode(self, text: str) -> Any:
        return json.loads(text)

    @staticmethod
    def _default(obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _check_keys(value: Any, seen: set[int]) -> None:
    """Reject non-str dict keys, which json would silently turn into strings."""
    if isinstance(value, dict):
        if id(value) in seen:
            return
        seen.add(id(value))
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"keys must be str, not {type(key).__name__} ({key!r})")
            _check_keys(item, seen)
    elif isinstance(value, (list, tuple)):
        if id(value) in seen:
            return
        seen.add(id(value))
        for item in value:
            _check_keys(item, seen)
