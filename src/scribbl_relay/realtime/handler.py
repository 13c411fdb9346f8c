"""WebSocket handler for the collaborative drawing relay."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from litestar import Router, WebSocket, websocket

from scribbl_relay.exceptions import MalformedFrameError
from scribbl_relay.realtime.messages import (
    ClearMessage,
    DrawHistoryMessage,
    JoinRoomMessage,
    MessageType,
    UserCountMessage,
    parse_frame,
)
from scribbl_relay.realtime.registry import DEFAULT_ROOM_TTL_SECONDS

if TYPE_CHECKING:
    from scribbl_relay.realtime.manager import ConnectedClient, ConnectionManager
    from scribbl_relay.realtime.registry import Room, RoomRegistry
    from scribbl_relay.services.telemetry import RelayTelemetry

logger = structlog.get_logger(__name__)


class RelayWebSocketHandler:
    """Handler for relay WebSocket connections.

    Each connection moves through ``unjoined -> joined -> disconnected``.
    Every event is applied to room state synchronously, with the recipients
    and payloads captured at that moment; delivery then happens under the
    room's lock so members observe events in the order they were applied.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        registry: RoomRegistry,
        *,
        room_ttl_seconds: float = DEFAULT_ROOM_TTL_SECONDS,
        telemetry: RelayTelemetry | None = None,
    ) -> None:
        """Initialize the WebSocket handler.

        Args:
            connection_manager: The connection manager instance.
            registry: The room registry.
            room_ttl_seconds: How long an empty room is kept before reclamation.
            telemetry: Optional telemetry service.
        """
        self._manager = connection_manager
        self._registry = registry
        self._room_ttl_seconds = room_ttl_seconds
        self._telemetry = telemetry

    async def handle_connection(self, socket: WebSocket) -> None:
        """Handle a WebSocket connection from accept to close.

        Args:
            socket: The WebSocket connection.
        """
        await socket.accept()

        client = self._manager.register(socket)
        if self._telemetry is not None:
            self._telemetry.track_connection_opened()

        logger.info("New client connected", client_id=client.client_id)

        try:
            await self._receive_loop(client)
        except Exception:
            logger.exception("WebSocket error", client_id=client.client_id)
        finally:
            await self.handle_disconnect(client)
            self._manager.unregister(client)
            if self._telemetry is not None:
                self._telemetry.track_connection_closed()

    async def _receive_loop(self, client: ConnectedClient) -> None:
        """Main receive loop for WebSocket messages.

        Args:
            client: The connected client.
        """
        async for frame in client.websocket.iter_data():
            await self.handle_frame(client, frame)

    async def handle_frame(self, client: ConnectedClient, frame: str | bytes | dict[str, Any]) -> None:
        """Decode one inbound frame and route it to its event handler.

        Undecodable frames and unknown event types are logged and dropped.
        Nothing is sent back to the client in either case.

        Args:
            client: The client the frame came from.
            frame: The raw frame.
        """
        handlers = {
            MessageType.JOIN_ROOM.value: self._handle_join,
            MessageType.DRAW.value: self._handle_draw,
            MessageType.CLEAR.value: self._handle_clear,
        }

        try:
            data = parse_frame(frame)
            handler = handlers.get(data["type"])
            if handler is None:
                logger.info("Unknown message type", message_type=data["type"], client_id=client.client_id)
                self._discard("unknown_type")
                return
            await handler(client, data)
        except MalformedFrameError as e:
            logger.warning(
                "Discarding malformed frame",
                reason=e.reason,
                error=str(e),
                client_id=client.client_id,
            )
            self._discard(e.reason)
        except Exception:
            logger.exception(
                "Error handling message",
                client_id=client.client_id,
                room_id=client.room_id,
            )

    async def _handle_join(self, client: ConnectedClient, data: dict[str, Any]) -> None:
        """Handle a client joining (and possibly creating) a room.

        A client already in another room leaves it first.

        Args:
            client: The joining client.
            data: The joinRoom frame.
        """
        message = JoinRoomMessage.from_dict(data)

        previous: tuple[Room, list[ConnectedClient]] | None = None
        if client.room_id is not None and client.room_id != message.room_id:
            previous = self._leave_room(client)

        room = self._registry.get_or_create(message.room_id)
        room.add_member(client)
        client.room_id = room.room_id

        history = DrawHistoryMessage(history=room.history).to_dict()
        recipients = room.snapshot()
        count = UserCountMessage(count=room.user_count).to_dict()

        if self._telemetry is not None:
            self._telemetry.track_join(room.room_id, room.user_count)

        logger.info(
            "Client joined room",
            client_id=client.client_id,
            room_id=room.room_id,
            is_creating=message.is_creating,
            user_count=room.user_count,
        )

        # Queue on the new room's lock before any await, so no later draw
        # reaches the joiner ahead of its history.
        async with room.lock:
            await self._manager.send(client, history)
            await self._manager.broadcast(recipients, count)

        if previous is not None:
            await self._announce_count(*previous)

    async def _handle_draw(self, client: ConnectedClient, data: dict[str, Any]) -> None:
        """Record a draw event and relay it to every other member.

        The payload is stored and forwarded exactly as received.

        Args:
            client: The drawing client.
            data: The draw frame.
        """
        room = self._current_room(client)
        if room is None:
            return

        room.append_draw(data)
        recipients = room.snapshot()

        if self._telemetry is not None:
            self._telemetry.track_draw(room.room_id)

        async with room.lock:
            await self._manager.broadcast(recipients, data, exclude=client)

    async def _handle_clear(self, client: ConnectedClient, data: dict[str, Any]) -> None:
        """Wipe a room's history and tell every member, sender included.

        Args:
            client: The clearing client.
            data: The clear frame (no fields are read).
        """
        room = self._current_room(client)
        if room is None:
            return

        room.clear_history()
        recipients = room.snapshot()

        if self._telemetry is not None:
            self._telemetry.track_clear(room.room_id)

        logger.info("Room cleared", room_id=room.room_id, client_id=client.client_id)

        async with room.lock:
            await self._manager.broadcast(recipients, ClearMessage().to_dict())

    async def handle_disconnect(self, client: ConnectedClient) -> None:
        """Handle WebSocket disconnection.

        Args:
            client: The client whose connection was lost.
        """
        logger.info("Client disconnected", client_id=client.client_id)

        left = self._leave_room(client)
        if left is not None:
            await self._announce_count(*left)

    def _leave_room(self, client: ConnectedClient) -> tuple[Room, list[ConnectedClient]] | None:
        """Detach a client from its room and schedule reclamation if it emptied.

        The client's room association is cleared whether or not the room
        still exists.

        Args:
            client: The leaving client.

        Returns:
            The room left and its remaining members, or None if the client
            was not in a room.
        """
        room_id = client.room_id
        client.room_id = None
        if room_id is None:
            return None

        room = self._registry.lookup(room_id)
        if room is None:
            return None

        room.remove_member(client)
        logger.info("Client left room", client_id=client.client_id, room_id=room_id, user_count=room.user_count)

        if room.is_empty:
            self._registry.schedule_reclamation(room_id, self._room_ttl_seconds)

        return room, room.snapshot()

    async def _announce_count(self, room: Room, recipients: list[ConnectedClient]) -> None:
        """Send the member count after a departure to the members that remain.

        Args:
            room: The room that was left.
            recipients: Members remaining when the departure was applied.
        """
        count = UserCountMessage(count=len(recipients)).to_dict()
        async with room.lock:
            await self._manager.broadcast(recipients, count)

    def _current_room(self, client: ConnectedClient) -> Room | None:
        """Get the room a client is joined to, if any."""
        if client.room_id is None:
            return None
        return self._registry.lookup(client.room_id)

    def _discard(self, reason: str) -> None:
        if self._telemetry is not None:
            self._telemetry.track_frame_discarded(reason)


def create_websocket_handler(
    path: str,
    connection_manager: ConnectionManager,
    registry: RoomRegistry,
    *,
    room_ttl_seconds: float = DEFAULT_ROOM_TTL_SECONDS,
    telemetry: RelayTelemetry | None = None,
) -> Router:
    """Create a WebSocket router for the drawing relay.

    Args:
        path: Path the relay WebSocket is served on.
        connection_manager: The connection manager instance.
        registry: The room registry.
        room_ttl_seconds: How long an empty room is kept before reclamation.
        telemetry: Optional telemetry service.

    Returns:
        A Litestar Router with the relay WebSocket handler.
    """
    handler = RelayWebSocketHandler(
        connection_manager,
        registry,
        room_ttl_seconds=room_ttl_seconds,
        telemetry=telemetry,
    )

    @websocket(path="/")
    async def relay_websocket(socket: WebSocket) -> None:
        """WebSocket endpoint for room drawing sessions.

        Args:
            socket: The WebSocket connection.
        """
        await handler.handle_connection(socket)

    return Router(path=path, route_handlers=[relay_websocket], tags=["WebSocket"])
