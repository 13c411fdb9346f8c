"""Room registry: room existence, membership, draw history and reclamation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from scribbl_relay.realtime.manager import ConnectedClient
    from scribbl_relay.services.telemetry import RelayTelemetry

logger = structlog.get_logger(__name__)

DEFAULT_ROOM_TTL_SECONDS = 3600.0


@dataclass(eq=False)
class Room:
    """A named broadcast domain with its own members and draw history.

    Attributes:
        room_id: Client-chosen room identifier.
        members: Connected clients keyed by client ID, in join order.
        history: Draw payloads accepted since the last clear, oldest first.
        created_at: When the first join created the room.
        generation: Bumped on every join. A reclamation timer only acts if
            the generation it captured is still current.
        lock: FIFO lock held while an event's messages are delivered, so
            members see events in the order they were applied.
    """

    room_id: str
    members: dict[str, ConnectedClient] = field(default_factory=dict)
    history: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    generation: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def user_count(self) -> int:
        """Number of current members."""
        return len(self.members)

    @property
    def history_length(self) -> int:
        """Number of draw payloads in the history."""
        return len(self.history)

    @property
    def is_empty(self) -> bool:
        """Whether the room has no members."""
        return not self.members

    def add_member(self, client: ConnectedClient) -> None:
        """Add a client to the room. Adding the same client twice is a no-op.

        Args:
            client: The joining client.
        """
        self.members[client.client_id] = client
        self.generation += 1

    def remove_member(self, client: ConnectedClient) -> bool:
        """Remove a client from the room.

        Args:
            client: The leaving client.

        Returns:
            True if the client was a member.
        """
        return self.members.pop(client.client_id, None) is not None

    def snapshot(self) -> list[ConnectedClient]:
        """Current members, in join order, as an independent list."""
        return list(self.members.values())

    def append_draw(self, payload: dict[str, Any]) -> None:
        """Append a draw payload, unchanged, to the history.

        Args:
            payload: The opaque draw event.
        """
        self.history.append(payload)

    def clear_history(self) -> None:
        """Drop the whole history."""
        self.history = []

    def to_status_dict(self) -> dict[str, Any]:
        """Status summary served by the room status endpoint."""
        return {
            "exists": True,
            "userCount": self.user_count,
            "drawHistoryLength": self.history_length,
        }


class RoomRegistry:
    """Process-wide registry of rooms.

    All methods that touch ``_rooms`` are synchronous, so under a single
    event loop a check-then-create never interleaves with another handler.
    """

    def __init__(self, telemetry: RelayTelemetry | None = None) -> None:
        """Initialize an empty registry.

        Args:
            telemetry: Optional telemetry service notified of room lifecycle.
        """
        self._rooms: dict[str, Room] = {}
        self._reclaim_tasks: set[asyncio.Task[None]] = set()
        self._telemetry = telemetry

    def get_or_create(self, room_id: str) -> Room:
        """Return the room for ``room_id``, creating an empty one if absent.

        Args:
            room_id: The room identifier.

        Returns:
            The existing or newly registered room.
        """
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id=room_id)
            self._rooms[room_id] = room
            if self._telemetry is not None:
                self._telemetry.track_room_created(room_id)
            logger.info("Room created", room_id=room_id, active_rooms=len(self._rooms))
        return room

    def lookup(self, room_id: str) -> Room | None:
        """Return the room for ``room_id`` without creating it.

        Args:
            room_id: The room identifier.

        Returns:
            The room, or None if it does not exist.
        """
        return self._rooms.get(room_id)

    def remove(self, room_id: str) -> bool:
        """Delete an empty room from the registry.

        Args:
            room_id: The room identifier.

        Returns:
            True if the room was removed. False if it did not exist or still
            has members.
        """
        room = self._rooms.get(room_id)
        if room is None or not room.is_empty:
            return False
        del self._rooms[room_id]
        return True

    def schedule_reclamation(self, room_id: str, delay: float = DEFAULT_ROOM_TTL_SECONDS) -> asyncio.Task[None] | None:
        """Schedule removal of an empty room after ``delay`` seconds.

        The timer is never cancelled by a later join. When it fires it checks
        that the room is still empty and has not been joined since it was
        scheduled, and otherwise does nothing.

        Args:
            room_id: The room identifier.
            delay: Seconds to wait before re-checking the room.

        Returns:
            The timer task, or None if the room is missing or not empty.
        """
        room = self._rooms.get(room_id)
        if room is None or not room.is_empty:
            return None

        task = asyncio.create_task(
            self._reclaim_after(room_id, room.generation, delay),
            name=f"reclaim-room-{room_id}",
        )
        self._reclaim_tasks.add(task)
        task.add_done_callback(self._reclaim_tasks.discard)

        logger.debug("Room reclamation scheduled", room_id=room_id, delay_seconds=delay)
        return task

    async def _reclaim_after(self, room_id: str, generation: int, delay: float) -> None:
        """Wait, then remove the room if it stayed empty the whole time.

        Args:
            room_id: The room identifier.
            generation: Room generation when the timer was scheduled.
            delay: Seconds to wait.
        """
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            logger.debug("Room reclamation cancelled", room_id=room_id)
            return

        room = self._rooms.get(room_id)
        if room is None:
            return

        if room.generation != generation or not room.is_empty:
            logger.debug(
                "Room reclamation skipped",
                room_id=room_id,
                user_count=room.user_count,
            )
            return

        if self.remove(room_id):
            if self._telemetry is not None:
                self._telemetry.track_room_reclaimed(room_id)
            logger.info("Room deleted (empty)", room_id=room_id, active_rooms=len(self._rooms))

    async def close(self) -> None:
        """Cancel every pending reclamation timer."""
        tasks = list(self._reclaim_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._reclaim_tasks.clear()

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    @property
    def active_rooms(self) -> int:
        """Get the number of rooms in the registry."""
        return len(self._rooms)

    @property
    def total_members(self) -> int:
        """Get the number of room memberships across all rooms."""
        return sum(room.user_count for room in self._rooms.values())

    @property
    def pending_reclamations(self) -> int:
        """Get the number of reclamation timers that have not fired yet."""
        return len(self._reclaim_tasks)
