"""Persistence failures reported by PersistedStore.

None of these are raised to application code. The store passes them to
its on_error callback and logs them, with the underlying exception
attached as __cause__.
"""


class PersistenceFailure(Exception):
    """Base class. `key` is the backing-store slot the failure concerns."""

    def __init__(self, key: str, message: str = "") -> None:
        super().__init__(message or f"{type(self).__name__} for {key!r}")
        self.key = key

    @property
    def kind(self) -> str:
        return type(self).__name__


class LoadDecodeFailure(PersistenceFailure):
    """Stored text exists but could not be decoded."""


class LoadAccessFailure(PersistenceFailure):
    """The backing store could not be read."""


class SaveEncodeFailure(PersistenceFailure):
    """The current value could not be encoded."""


class SaveAccessFailure(PersistenceFailure):
    """The backing store rejected the write."""
