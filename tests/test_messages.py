"""Tests for relay message types and frame decoding."""

from __future__ import annotations

import json

import pytest

from scribbl_relay.exceptions import MalformedFrameError
from scribbl_relay.realtime.messages import (
    ClearMessage,
    DrawHistoryMessage,
    JoinRoomMessage,
    MessageType,
    UserCountMessage,
    parse_frame,
)


class TestMessageTypes:
    """Tests for message type values and outbound serialization."""

    def test_message_type_values(self) -> None:
        """Test that message types use the wire names clients expect."""
        assert MessageType.JOIN_ROOM.value == "joinRoom"
        assert MessageType.DRAW.value == "draw"
        assert MessageType.CLEAR.value == "clear"
        assert MessageType.DRAW_HISTORY.value == "drawHistory"
        assert MessageType.USER_COUNT.value == "userCount"

    def test_draw_history_to_dict(self) -> None:
        """Test DrawHistoryMessage serialization."""
        strokes = [{"type": "draw", "x": 1, "y": 2}, {"type": "draw", "x": 3, "y": 4}]
        data = DrawHistoryMessage(history=strokes).to_dict()

        assert data == {"type": "drawHistory", "history": strokes}

    def test_draw_history_is_a_snapshot(self) -> None:
        """Test that later appends do not leak into an already built snapshot."""
        history = [{"type": "draw", "x": 1}]
        data = DrawHistoryMessage(history=history).to_dict()
        history.append({"type": "draw", "x": 2})

        assert len(data["history"]) == 1

    def test_user_count_to_dict(self) -> None:
        """Test UserCountMessage serialization."""
        assert UserCountMessage(count=3).to_dict() == {"type": "userCount", "count": 3}

    def test_clear_to_dict(self) -> None:
        """Test ClearMessage serialization."""
        assert ClearMessage().to_dict() == {"type": "clear"}


class TestJoinRoomMessage:
    """Tests for parsing joinRoom frames."""

    def test_from_dict(self) -> None:
        """Test parsing a complete joinRoom frame."""
        msg = JoinRoomMessage.from_dict({"type": "joinRoom", "roomId": "abc", "isCreating": True})

        assert msg.room_id == "abc"
        assert msg.is_creating is True

    def test_is_creating_defaults_to_false(self) -> None:
        """Test that the informational flag is optional."""
        msg = JoinRoomMessage.from_dict({"type": "joinRoom", "roomId": "abc"})
        assert msg.is_creating is False

    @pytest.mark.parametrize("room_id", [None, "", 42, ["abc"]])
    def test_invalid_room_id(self, room_id: object) -> None:
        """Test that a missing or non-string roomId is rejected."""
        with pytest.raises(MalformedFrameError) as exc_info:
            JoinRoomMessage.from_dict({"type": "joinRoom", "roomId": room_id})

        assert exc_info.value.reason == "invalid_room_id"

    def test_to_dict(self) -> None:
        """Test JoinRoomMessage serialization uses wire field names."""
        data = JoinRoomMessage(room_id="abc", is_creating=True).to_dict()
        assert data == {"type": "joinRoom", "roomId": "abc", "isCreating": True}


class TestParseFrame:
    """Tests for decoding raw WebSocket frames."""

    def test_text_frame(self) -> None:
        """Test decoding a JSON text frame."""
        data = parse_frame(json.dumps({"type": "draw", "points": [[0, 0], [1, 1]]}))
        assert data == {"type": "draw", "points": [[0, 0], [1, 1]]}

    def test_binary_frame(self) -> None:
        """Test decoding a UTF-8 JSON binary frame."""
        assert parse_frame(b'{"type": "clear"}') == {"type": "clear"}

    def test_unknown_type_is_not_rejected(self) -> None:
        """Test that unknown types decode fine and are left to the dispatcher."""
        assert parse_frame('{"type": "wave"}')["type"] == "wave"

    @pytest.mark.parametrize(
        ("frame", "reason"),
        [
            ("not json", "invalid_json"),
            (b"\xff\xfe", "invalid_json"),
            ("[1, 2, 3]", "not_an_object"),
            ('"draw"', "not_an_object"),
            ('{"x": 1}', "missing_type"),
            ('{"type": 7}', "missing_type"),
        ],
    )
    def test_malformed_frames(self, frame: str | bytes, reason: str) -> None:
        """Test that undecodable frames raise MalformedFrameError with a reason."""
        with pytest.raises(MalformedFrameError) as exc_info:
            parse_frame(frame)

        assert exc_info.value.reason == reason
