"""Scribbl-relay: a Litestar relay for collaborative drawing rooms.

Clients connect over WebSocket, join a named room, receive the room's
drawing history, and from then on see every stroke and clear made by the
other members. Rooms live in memory and are reclaimed once they have been
empty for an hour.

Key Components:
    - Realtime: RoomRegistry, ConnectionManager, RelayWebSocketHandler
    - Web: room and process status endpoints, health probes, stats
    - Plugin: RelayPlugin for Litestar integration

Quick Start:
    >>> from litestar import Litestar
    >>> from scribbl_relay import RelayPlugin, RelayConfig
    >>>
    >>> app = Litestar(plugins=[RelayPlugin(RelayConfig())])
"""

from __future__ import annotations

__version__ = "0.1.0"

from scribbl_relay.exceptions import MalformedFrameError, RelayError
from scribbl_relay.plugin import RelayConfig, RelayPlugin
from scribbl_relay.realtime import (
    ConnectedClient,
    ConnectionManager,
    MessageType,
    RelayWebSocketHandler,
    Room,
    RoomRegistry,
    create_websocket_handler,
)
from scribbl_relay.services import RelayTelemetry
from scribbl_relay.web import create_router

__all__ = [
    "ConnectedClient",
    "ConnectionManager",
    "MalformedFrameError",
    "MessageType",
    "RelayConfig",
    "RelayError",
    "RelayPlugin",
    "RelayTelemetry",
    "RelayWebSocketHandler",
    "Room",
    "RoomRegistry",
    "create_router",
    "create_websocket_handler",
]
