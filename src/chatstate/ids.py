"""Unique identifier generation."""

import random
import string
import uuid

_BASE36 = string.digits + string.ascii_lowercase
_FALLBACK_PREFIX = "id-"
_FALLBACK_MIN_LENGTH = 9


def generate_id() -> str:
    """Return a probably-unique identifier.

    Normally a random UUID in canonical hyphenated form. If the OS has no
    randomness source, falls back to ``"id-"`` plus a base-36 fragment from
    the ``random`` module, which only promises a low collision rate.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return _fallback_id()


def _fallback_id() -> str:
    return _FALLBACK_PREFIX + _base36(random.getrandbits(64)).rjust(_FALLBACK_MIN_LENGTH, "0")


def _base36(number: int) -> str:
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"
