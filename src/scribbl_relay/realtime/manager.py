"""Connection manager for relay WebSocket sessions."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from litestar import WebSocket

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class ConnectedClient:
    """Session record for one client's WebSocket connection.

    The room association lives here rather than in a side table keyed by
    socket, so dropping the record drops the association with it.
    """

    client_id: str
    websocket: WebSocket
    room_id: str | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_open(self) -> bool:
        """Whether the underlying WebSocket can still be written to."""
        return self.websocket.connection_state == "connect"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "client_id": self.client_id,
            "room_id": self.room_id,
            "connected_at": self.connected_at.isoformat(),
        }


class ConnectionManager:
    """Tracks live connections and delivers messages to them.

    Sends are best-effort: a failure to reach one client is logged and never
    prevents delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self._clients: dict[str, ConnectedClient] = {}

    def register(self, websocket: WebSocket) -> ConnectedClient:
        """Create a session record for a freshly accepted WebSocket.

        Args:
            websocket: The accepted WebSocket connection.

        Returns:
            The new ConnectedClient, not yet associated with any room.
        """
        client = ConnectedClient(client_id=uuid4().hex, websocket=websocket)
        self._clients[client.client_id] = client

        logger.debug(
            "Client registered",
            client_id=client.client_id,
            total_connections=len(self._clients),
        )
        return client

    def unregister(self, client: ConnectedClient) -> None:
        """Forget a client's session record.

        Args:
            client: The client to drop.
        """
        self._clients.pop(client.client_id, None)
        logger.debug(
            "Client unregistered",
            client_id=client.client_id,
            total_connections=len(self._clients),
        )

    def get_client(self, client_id: str) -> ConnectedClient | None:
        """Get a connected client by ID.

        Args:
            client_id: The client's identifier.

        Returns:
            The ConnectedClient or None if not connected.
        """
        return self._clients.get(client_id)

    async def send(self, client: ConnectedClient, message: dict[str, Any]) -> bool:
        """Send a message to a single client.

        Args:
            client: The target client.
            message: The message to send.

        Returns:
            True if sent successfully, False otherwise.
        """
        if not client.is_open:
            return False
        return await self._send_text(client, json.dumps(message))

    async def broadcast(
        self,
        members: Iterable[ConnectedClient],
        message: dict[str, Any],
        exclude: ConnectedClient | None = None,
    ) -> int:
        """Broadcast a message to a set of room members.

        Callers pass a snapshot of the room's members taken when the event was
        applied, so members joining later do not receive it. Members whose
        socket is no longer open are skipped.

        Args:
            members: The recipients, usually ``room.snapshot()``.
            message: The message to send.
            exclude: Optional member to leave out (the sender of a draw).

        Returns:
            Number of members the message was delivered to.
        """
        json_message = json.dumps(message)

        tasks = []
        for member in members:
            if member is exclude or not member.is_open:
                continue
            tasks.append(self._send_text(member, json_message))

        if not tasks:
            return 0

        results = await asyncio.gather(*tasks, return_exceptions=True)
        return sum(1 for result in results if result is True)

    async def _send_text(self, client: ConnectedClient, message: str) -> bool:
        """Internal method to send a serialized message to a client.

        Args:
            client: The connected client.
            message: The JSON message string.

        Returns:
            True if sent successfully, False otherwise.
        """
        try:
            await client.websocket.send_text(message)
        except Exception:
            logger.exception(
                "Failed to send message",
                client_id=client.client_id,
                room_id=client.room_id,
            )
            return False
        return True

    @property
    def total_connections(self) -> int:
        """Get the number of open client sessions."""
        return len(self._clients)
