"""chatstate: persisted reactive state and id helpers for chat clients."""

from importlib.metadata import version as _version

__version__ = _version("chatstate")

from chatstate._tracking import get_pending_count, untracked
from chatstate.observable import (
    Observable,
    ObservableList,
    ObservableDict,
    deep_observable,
    to_plain,
)
from chatstate.reaction import Reaction, autorun
from chatstate.action import action, transaction
from chatstate.ids import generate_id
from chatstate.codec import Codec, JsonCodec
from chatstate.backends import (
    BackingStore,
    MemoryStorage,
    JsonFileStorage,
    get_default_storage,
    set_default_storage,
)
from chatstate.errors import (
    PersistenceFailure,
    LoadDecodeFailure,
    LoadAccessFailure,
    SaveEncodeFailure,
    SaveAccessFailure,
)
from chatstate.store import PersistedStore, persisted
from chatstate.chat import (
    ChatRoom,
    ChatRoomCodec,
    Message,
    Participant,
    new_message,
    new_participant,
    new_room,
)

__all__ = [
    "Observable",
    "ObservableList",
    "ObservableDict",
    "deep_observable",
    "to_plain",
    "Reaction",
    "autorun",
    "action",
    "transaction",
    "get_pending_count",
    "untracked",
    "generate_id",
    "Codec",
    "JsonCodec",
    "BackingStore",
    "MemoryStorage",
    "JsonFileStorage",
    "get_default_storage",
    "set_default_storage",
    "PersistenceFailure",
    "LoadDecodeFailure",
    "LoadAccessFailure",
    "SaveEncodeFailure",
    "SaveAccessFailure",
    "PersistedStore",
    "persisted",
    "ChatRoom",
    "ChatRoomCodec",
    "Message",
    "Participant",
    "new_message",
    "new_participant",
    "new_room",
]
