"""Telemetry service for scribbl-relay.

Tracks connections, room lifecycle and relayed drawing traffic since the
process started. Counters live in memory only.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

logger = structlog.get_logger(__name__)


@dataclass
class TelemetryStats:
    """Current telemetry statistics snapshot."""

    # Active counts
    active_websocket_connections: int = 0

    # Cumulative counts (since server start)
    total_connections: int = 0
    total_joins: int = 0
    rooms_created: int = 0
    rooms_reclaimed: int = 0
    draws_relayed: int = 0
    clears: int = 0
    frames_discarded: int = 0

    # Recent activity (last 5 minutes)
    recent_draws: int = 0

    # Server info
    uptime_seconds: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class RelayTelemetry:
    """Service for tracking and reporting relay telemetry.

    Usage:
        telemetry = RelayTelemetry()

        telemetry.track_connection_opened()
        telemetry.track_room_created("abc")
        telemetry.track_draw("abc")

        stats = telemetry.get_stats()
    """

    def __init__(self) -> None:
        """Initialize the telemetry service."""
        self._started_at = datetime.now(UTC)
        self._stats = TelemetryStats(started_at=self._started_at)

        # One [second, draw count] bucket per second with draws, oldest first.
        self._recent_draws: deque[list[int]] = deque()
        self._recent_window = timedelta(minutes=5)
        self._callbacks: list[Callable[[str, dict[str, Any]], None]] = []

    def add_callback(self, callback: Callable[[str, dict[str, Any]], None]) -> None:
        """Add a callback for telemetry events.

        Args:
            callback: Function called with (event_name, event_data) for each event.
        """
        self._callbacks.append(callback)

    def _emit_event(self, event: str, data: dict[str, Any]) -> None:
        """Emit an event to the log and all registered callbacks.

        Args:
            event: Event name.
            data: Event data.
        """
        logger.debug("Telemetry event", telemetry_event=event, **data)

        for callback in self._callbacks:
            try:
                callback(event, data)
            except Exception as e:  # noqa: BLE001
                logger.debug("Telemetry callback failed", error=str(e))

    def _cleanup_recent_events(self) -> None:
        """Drop draw buckets older than the recent window."""
        cutoff = int((datetime.now(UTC) - self._recent_window).timestamp())
        while self._recent_draws and self._recent_draws[0][0] <= cutoff:
            self._recent_draws.popleft()

    # === Connection Tracking ===

    def track_connection_opened(self) -> None:
        """Track a new WebSocket connection."""
        self._stats.active_websocket_connections += 1
        self._stats.total_connections += 1
        self._emit_event("connection_opened", {})

    def track_connection_closed(self) -> None:
        """Track a WebSocket connection closing."""
        self._stats.active_websocket_connections = max(0, self._stats.active_websocket_connections - 1)
        self._emit_event("connection_closed", {})

    # === Room Tracking ===

    def track_room_created(self, room_id: str) -> None:
        """Track a room being created by its first join.

        Args:
            room_id: Room identifier.
        """
        self._stats.rooms_created += 1
        self._emit_event("room_created", {"room_id": room_id})

    def track_room_reclaimed(self, room_id: str) -> None:
        """Track an empty room being removed from the registry.

        Args:
            room_id: Room identifier.
        """
        self._stats.rooms_reclaimed += 1
        self._emit_event("room_reclaimed", {"room_id": room_id})

    def track_join(self, room_id: str, member_count: int) -> None:
        """Track a client joining a room.

        Args:
            room_id: Room identifier.
            member_count: Members after the join.
        """
        self._stats.total_joins += 1
        self._emit_event("room_joined", {"room_id": room_id, "member_count": member_count})

    # === Drawing Traffic ===

    def track_draw(self, room_id: str) -> None:
        """Track a draw event accepted into a room's history.

        Args:
            room_id: Room identifier.
        """
        self._stats.draws_relayed += 1
        second = int(datetime.now(UTC).timestamp())
        if self._recent_draws and self._recent_draws[-1][0] == second:
            self._recent_draws[-1][1] += 1
        else:
            self._recent_draws.append([second, 1])
        self._cleanup_recent_events()
        self._emit_event("draw_relayed", {"room_id": room_id})

    def track_clear(self, room_id: str) -> None:
        """Track a room's history being cleared.

        Args:
            room_id: Room identifier.
        """
        self._stats.clears += 1
        self._emit_event("room_cleared", {"room_id": room_id})

    def track_frame_discarded(self, reason: str) -> None:
        """Track an inbound frame that was dropped.

        Args:
            reason: Why the frame was dropped (``invalid_json``, ``unknown_type``...).
        """
        self._stats.frames_discarded += 1
        self._emit_event("frame_discarded", {"reason": reason})

    # === Stats API ===

    def get_stats(self) -> TelemetryStats:
        """Get current telemetry statistics.

        Returns:
            Current stats snapshot.
        """
        self._cleanup_recent_events()
        self._stats.recent_draws = sum(count for _, count in self._recent_draws)
        self._stats.uptime_seconds = (datetime.now(UTC) - self._started_at).total_seconds()
        return self._stats

    def get_stats_dict(self) -> dict[str, Any]:
        """Get stats as a dictionary for JSON serialization.

        Returns:
            Stats as dict.
        """
        stats = self.get_stats()
        return {
            "active_websocket_connections": stats.active_websocket_connections,
            "total_connections": stats.total_connections,
            "total_joins": stats.total_joins,
            "rooms_created": stats.rooms_created,
            "rooms_reclaimed": stats.rooms_reclaimed,
            "draws_relayed": stats.draws_relayed,
            "clears": stats.clears,
            "frames_discarded": stats.frames_discarded,
            "recent_draws": stats.recent_draws,
            "uptime_seconds": stats.uptime_seconds,
            "started_at": stats.started_at.isoformat(),
        }

