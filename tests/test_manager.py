"""Tests for the connection manager."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

if TYPE_CHECKING:
    from collections.abc import Callable

    from scribbl_relay.realtime.manager import ConnectionManager


class TestConnectionManager:
    """Tests for ConnectionManager."""

    def test_register_assigns_unique_ids(
        self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]
    ) -> None:
        """Test that each registered socket gets its own client record."""
        first = manager.register(socket_factory())
        second = manager.register(socket_factory())

        assert first.client_id != second.client_id
        assert first.room_id is None
        assert manager.total_connections == 2
        assert manager.get_client(first.client_id) is first

    def test_unregister(self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]) -> None:
        """Test that unregistering forgets the client and tolerates repeats."""
        client = manager.register(socket_factory())

        manager.unregister(client)
        manager.unregister(client)

        assert manager.get_client(client.client_id) is None
        assert manager.total_connections == 0

    def test_client_to_dict(self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]) -> None:
        """Test client serialization."""
        client = manager.register(socket_factory())
        client.room_id = "abc"

        data = client.to_dict()
        assert data["client_id"] == client.client_id
        assert data["room_id"] == "abc"
        assert "connected_at" in data

    async def test_send(self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]) -> None:
        """Test sending a message to one client."""
        ws = socket_factory()
        client = manager.register(ws)

        assert await manager.send(client, {"type": "clear"}) is True
        ws.send_text.assert_awaited_once_with(json.dumps({"type": "clear"}))

    async def test_send_to_closed_socket(
        self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]
    ) -> None:
        """Test that nothing is written to a socket that is no longer open."""
        ws = socket_factory()
        ws.connection_state = "disconnect"
        client = manager.register(ws)

        assert await manager.send(client, {"type": "clear"}) is False
        ws.send_text.assert_not_called()

    async def test_send_failure_returns_false(
        self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]
    ) -> None:
        """Test that a failing write is reported, not raised."""
        ws = socket_factory()
        ws.send_text = AsyncMock(side_effect=RuntimeError("closed"))
        client = manager.register(ws)

        assert await manager.send(client, {"type": "clear"}) is False

    async def test_broadcast(self, manager: ConnectionManager, socket_factory: Callable[..., MagicMock]) -> None:
        """Test broadcasting with an excluded sender, a closed member and a failing member."""
        sender = manager.register(socket_factory())
        ok = manager.register(socket_factory())
        closed = manager.register(socket_factory())
        closed.websocket.connection_state = "disconnect"
        failing = manager.register(socket_factory())
        failing.websocket.send_text = AsyncMock(side_effect=RuntimeError("closed"))

        delivered = await manager.broadcast([sender, ok, closed, failing], {"type": "draw"}, exclude=sender)

        assert delivered == 1
        sender.websocket.send_text.assert_not_called()
        closed.websocket.send_text.assert_not_called()
        ok.websocket.send_text.assert_awaited_once_with(json.dumps({"type": "draw"}))

    async def test_broadcast_to_nobody(self, manager: ConnectionManager) -> None:
        """Test broadcasting to an empty member list."""
        assert await manager.broadcast([], {"type": "clear"}) == 0
