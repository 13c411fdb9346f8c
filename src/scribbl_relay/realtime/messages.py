"""WebSocket message types and schemas for the drawing relay."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from scribbl_relay.exceptions import MalformedFrameError


class MessageType(str, Enum):
    """Types of WebSocket messages."""

    # Client -> Server
    JOIN_ROOM = "joinRoom"
    DRAW = "draw"
    CLEAR = "clear"

    # Server -> Client
    DRAW_HISTORY = "drawHistory"
    USER_COUNT = "userCount"


@dataclass
class JoinRoomMessage:
    """Message sent by a client to enter a room.

    ``is_creating`` is what the client believes it is doing; joining always
    creates the room when it does not exist, so the flag is only logged.
    """

    room_id: str
    is_creating: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JoinRoomMessage:
        """Build a join message from a decoded frame.

        Args:
            data: The decoded frame.

        Returns:
            The parsed join message.

        Raises:
            MalformedFrameError: If ``roomId`` is missing or not a string.
        """
        room_id = data.get("roomId")
        if not isinstance(room_id, str) or not room_id:
            msg = "joinRoom requires a non-empty string roomId"
            raise MalformedFrameError("invalid_room_id", msg)
        return cls(room_id=room_id, is_creating=bool(data.get("isCreating", False)))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.JOIN_ROOM.value,
            "roomId": self.room_id,
            "isCreating": self.is_creating,
        }


@dataclass
class DrawHistoryMessage:
    """Catch-up snapshot sent to a client right after it joins."""

    history: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.DRAW_HISTORY.value,
            "history": list(self.history),
        }


@dataclass
class UserCountMessage:
    """Current number of members in a room."""

    count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.USER_COUNT.value,
            "count": self.count,
        }


@dataclass
class ClearMessage:
    """Tells every member to wipe their canvas."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"type": MessageType.CLEAR.value}


def parse_frame(frame: str | bytes | dict[str, Any]) -> dict[str, Any]:
    """Decode an inbound WebSocket frame into an event dictionary.

    Args:
        frame: Raw text or binary frame, or an already decoded mapping.

    Returns:
        The decoded event. Its ``type`` is not checked against
        :class:`MessageType`; unknown types are left to the dispatcher.

    Raises:
        MalformedFrameError: If the frame is not a JSON object with a
            string ``type`` field.
    """
    if isinstance(frame, dict):
        data: Any = frame
    else:
        try:
            data = json.loads(frame)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            msg = f"Frame is not valid JSON: {e}"
            raise MalformedFrameError("invalid_json", msg) from e

    if not isinstance(data, dict):
        msg = f"Frame must be a JSON object, got {type(data).__name__}"
        raise MalformedFrameError("not_an_object", msg)

    if not isinstance(data.get("type"), str):
        msg = "Message type is required"
        raise MalformedFrameError("missing_type", msg)

    return data
