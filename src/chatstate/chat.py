"""Chat data shapes.

Plain TypedDicts, so a ChatRoom can be stored in a PersistedStore as-is
and edited through its observable containers:

    room = persisted("room", new_room("General"), codec=ChatRoomCodec())
    room.get()["messages"].append(new_message("hi", "user"))
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, NotRequired, TypedDict

from chatstate.codec import JsonCodec
from chatstate.ids import generate_id

Sender = Literal["user", "bot"]


class Message(TypedDict):
    id: str
    text: str
    sender: Sender
    participant_id: NotRequired[str]
    participant_avatar: NotRequired[str]
    timestamp: datetime


class Participant(TypedDict):
    id: str
    name: str
    avatar: str
    auto_respond: bool
    min_response_time: int  # milliseconds
    max_response_time: int  # milliseconds


class ChatRoom(TypedDict):
    id: str
    name: str
    messages: list[Message]
    participants: list[Participant]


def new_message(
    text: str,
    sender: Sender,
    participant: Participant | None = None,
    timestamp: datetime | None = None,
) -> Message:
    """Build a Message with a fresh id, stamped now (UTC) unless given a timestamp."""
    if sender not in ("user", "bot"):
        raise ValueError(f"sender must be 'user' or 'bot', not {sender!r}")
    message: Message = {
        "id": generate_id(),
        "text": text,
        "sender": sender,
        "timestamp": timestamp or datetime.now(timezone.utc),
    }
    if participant is not None:
        message["participant_id"] = participant["id"]
        message["participant_avatar"] = participant["avatar"]
    return message


def new_participant(
    name: str,
    avatar: str,
    *,
    auto_respond: bool = True,
    min_response_time: int = 1000,
    max_response_time: int = 3000,
) -> Participant:
    if min_response_time < 0:
        raise ValueError("min_response_time must not be negative")
    if min_response_time > max_response_time:
        raise ValueError(
            f"min_response_time ({min_response_time}) exceeds "
            f"max_response_time ({max_response_time})"
        )
    return {
        "id": generate_id(),
        "name": name,
        "avatar": avatar,
        "auto_respond": auto_respond,
        "min_response_time": min_response_time,
        "max_response_time": max_response_time,
    }


def new_room(name: str) -> ChatRoom:
    return {"id": generate_id(), "name": name, "messages": [], "participants": []}


class ChatRoomCodec(JsonCodec):
    """JsonCodec that turns message timestamps back into datetimes on decode."""

    def decode(self, text: str) -> Any:
        room = super().decode(text)
        for message in room.get("messages", ()):
            stamp = message.get("timestamp")
            if isinstance(stamp, str):
                message["timestamp"] = datetime.fromisoformat(stamp)
        return room
