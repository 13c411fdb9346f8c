"""Real-time WebSocket module for scribbl-relay.

This module provides the room registry, connection management and the
WebSocket handler that relays strokes and clears between room members.
"""

from __future__ import annotations

from scribbl_relay.realtime.handler import RelayWebSocketHandler, create_websocket_handler
from scribbl_relay.realtime.manager import ConnectedClient, ConnectionManager
from scribbl_relay.realtime.messages import (
    ClearMessage,
    DrawHistoryMessage,
    JoinRoomMessage,
    MessageType,
    UserCountMessage,
    parse_frame,
)
from scribbl_relay.realtime.registry import DEFAULT_ROOM_TTL_SECONDS, Room, RoomRegistry

__all__ = [
    "DEFAULT_ROOM_TTL_SECONDS",
    "ClearMessage",
    "ConnectedClient",
    "ConnectionManager",
    "DrawHistoryMessage",
    "JoinRoomMessage",
    "MessageType",
    "RelayWebSocketHandler",
    "Room",
    "RoomRegistry",
    "UserCountMessage",
    "create_websocket_handler",
    "parse_frame",
]
