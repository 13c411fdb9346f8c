"""Read-only status endpoints for the relay."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar

from litestar import Controller, get

from scribbl_relay.realtime.registry import RoomRegistry  # noqa: TC001


class StatusController(Controller):
    """Process-wide and per-room status queries.

    These never create rooms; they only read the registry.
    """

    path = ""
    tags: ClassVar[list[str]] = ["Status"]

    @get("/")
    async def server_status(self, registry: RoomRegistry) -> dict[str, Any]:
        """Report that the relay is up and how many rooms it holds.

        Returns:
            Status string, active room count and the current UTC timestamp.
        """
        return {
            "status": "Server is running",
            "activeRooms": registry.active_rooms,
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @get("/room/{room_id:str}")
    async def room_status(self, registry: RoomRegistry, room_id: str) -> dict[str, Any]:
        """Report whether a room exists and, if so, its size.

        Args:
            registry: The room registry.
            room_id: The room identifier.

        Returns:
            ``{"exists": false}`` for unknown rooms, otherwise ``exists``,
            ``userCount`` and ``drawHistoryLength``.
        """
        room = registry.lookup(room_id)
        if room is None:
            return {"exists": False}
        return room.to_status_dict()
