"""Stats API controller for relay telemetry."""

from __future__ import annotations

from typing import Any, ClassVar

from litestar import Controller, get

from scribbl_relay.realtime.registry import RoomRegistry  # noqa: TC001
from scribbl_relay.services.telemetry import RelayTelemetry  # noqa: TC001


class StatsController(Controller):
    """Controller for stats and telemetry endpoints."""

    path = "/stats"
    tags: ClassVar[list[str]] = ["Stats"]

    @get("/")
    async def get_stats(self, telemetry: RelayTelemetry, registry: RoomRegistry) -> dict[str, Any]:
        """Get current relay statistics.

        Returns:
            Telemetry counters plus live registry figures: active rooms,
            members across all rooms and pending reclamation timers.
        """
        stats = telemetry.get_stats_dict()
        stats["active_rooms"] = registry.active_rooms
        stats["room_members"] = registry.total_members
        stats["pending_reclamations"] = registry.pending_reclamations
        return stats
