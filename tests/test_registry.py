"""Tests for the room registry and empty-room reclamation."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

from scribbl_relay.realtime.manager import ConnectedClient
from scribbl_relay.realtime.registry import Room, RoomRegistry

if TYPE_CHECKING:
    from scribbl_relay.services.telemetry import RelayTelemetry


def make_client(client_id: str = "c1") -> ConnectedClient:
    """Create a client record with an open mock socket."""
    ws = MagicMock()
    ws.connection_state = "connect"
    return ConnectedClient(client_id=client_id, websocket=ws)


class TestRoom:
    """Tests for the Room record."""

    def test_new_room_is_empty(self) -> None:
        """Test that a fresh room has no members and no history."""
        room = Room(room_id="abc")

        assert room.is_empty
        assert room.user_count == 0
        assert room.history_length == 0

    def test_add_member_is_idempotent(self) -> None:
        """Test that adding the same client twice keeps one membership."""
        room = Room(room_id="abc")
        client = make_client()

        room.add_member(client)
        room.add_member(client)

        assert room.user_count == 1

    def test_add_member_bumps_generation(self) -> None:
        """Test that every join advances the generation."""
        room = Room(room_id="abc")
        room.add_member(make_client("a"))
        room.add_member(make_client("b"))

        assert room.generation == 2

    def test_remove_member(self) -> None:
        """Test removing members, including one that never joined."""
        room = Room(room_id="abc")
        client = make_client()
        room.add_member(client)

        assert room.remove_member(client) is True
        assert room.remove_member(client) is False
        assert room.is_empty

    def test_snapshot_is_independent(self) -> None:
        """Test that a snapshot does not follow later membership changes."""
        room = Room(room_id="abc")
        first = make_client("a")
        room.add_member(first)

        snapshot = room.snapshot()
        room.add_member(make_client("b"))

        assert snapshot == [first]

    def test_history_append_and_clear(self) -> None:
        """Test that history keeps payloads in order until cleared."""
        room = Room(room_id="abc")
        strokes = [{"type": "draw", "n": i} for i in range(3)]
        for stroke in strokes:
            room.append_draw(stroke)

        assert room.history == strokes

        room.clear_history()
        assert room.history_length == 0

    def test_to_status_dict(self) -> None:
        """Test the room status summary."""
        room = Room(room_id="abc")
        room.add_member(make_client())
        room.append_draw({"type": "draw"})

        assert room.to_status_dict() == {"exists": True, "userCount": 1, "drawHistoryLength": 1}


class TestRoomRegistry:
    """Tests for room lookup and creation."""

    async def test_get_or_create_creates_once(self, registry: RoomRegistry, telemetry: RelayTelemetry) -> None:
        """Test that a room id maps to exactly one room."""
        first = registry.get_or_create("abc")
        second = registry.get_or_create("abc")

        assert first is second
        assert len(registry) == 1
        assert telemetry.get_stats().rooms_created == 1

    async def test_lookup_does_not_create(self, registry: RoomRegistry) -> None:
        """Test that lookup of an unknown room leaves the registry unchanged."""
        assert registry.lookup("missing") is None
        assert "missing" not in registry
        assert registry.active_rooms == 0

    async def test_remove_requires_empty_room(self, registry: RoomRegistry) -> None:
        """Test that a room with members is never removed."""
        room = registry.get_or_create("abc")
        client = make_client()
        room.add_member(client)

        assert registry.remove("abc") is False
        assert "abc" in registry

        room.remove_member(client)
        assert registry.remove("abc") is True
        assert "abc" not in registry

    async def test_remove_missing_room(self, registry: RoomRegistry) -> None:
        """Test removing a room that does not exist."""
        assert registry.remove("missing") is False

    async def test_total_members(self, registry: RoomRegistry) -> None:
        """Test counting memberships across rooms."""
        registry.get_or_create("a").add_member(make_client("1"))
        registry.get_or_create("b").add_member(make_client("2"))
        registry.get_or_create("b").add_member(make_client("3"))

        assert registry.total_members == 3


class TestReclamation:
    """Tests for delayed removal of empty rooms."""

    async def test_empty_room_is_reclaimed(self, registry: RoomRegistry, telemetry: RelayTelemetry) -> None:
        """Test that a room left empty is removed after the delay."""
        registry.get_or_create("abc")

        task = registry.schedule_reclamation("abc", delay=0.01)
        assert task is not None
        assert registry.pending_reclamations == 1

        await task

        assert "abc" not in registry
        assert registry.pending_reclamations == 0
        assert telemetry.get_stats().rooms_reclaimed == 1

    async def test_not_scheduled_for_occupied_room(self, registry: RoomRegistry) -> None:
        """Test that no timer is started while the room has members."""
        registry.get_or_create("abc").add_member(make_client())

        assert registry.schedule_reclamation("abc", delay=0.01) is None
        assert registry.schedule_reclamation("missing", delay=0.01) is None
        assert registry.pending_reclamations == 0

    async def test_rejoin_before_expiry_keeps_room(self, registry: RoomRegistry) -> None:
        """Test that a join during the wait keeps the room and its history."""
        room = registry.get_or_create("abc")
        room.append_draw({"type": "draw"})

        task = registry.schedule_reclamation("abc", delay=0.01)
        assert task is not None
        room.add_member(make_client())

        await task

        assert registry.lookup("abc") is room
        assert room.history_length == 1

    async def test_stale_timer_does_not_cut_second_vacancy_short(self, registry: RoomRegistry) -> None:
        """Test that a timer from an earlier vacancy ignores a later one."""
        room = registry.get_or_create("abc")
        client = make_client()

        first = registry.schedule_reclamation("abc", delay=0.02)
        assert first is not None

        # Rejoin and leave again before the first timer fires.
        room.add_member(client)
        room.remove_member(client)
        second = registry.schedule_reclamation("abc", delay=0.2)
        assert second is not None

        await first
        assert registry.lookup("abc") is room

        await second
        assert "abc" not in registry

    async def test_close_cancels_pending_timers(self, registry: RoomRegistry) -> None:
        """Test that close() cancels timers without removing rooms."""
        registry.get_or_create("abc")
        task = registry.schedule_reclamation("abc", delay=60)
        assert task is not None

        await registry.close()
        await asyncio.sleep(0)

        assert task.done()
        assert registry.pending_reclamations == 0
        assert "abc" in registry
