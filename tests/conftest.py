"""Pytest configuration and fixtures for scribbl-relay tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from litestar import Litestar
from litestar.testing import TestClient

from scribbl_relay.plugin import RelayConfig, RelayPlugin
from scribbl_relay.realtime.handler import RelayWebSocketHandler
from scribbl_relay.realtime.manager import ConnectionManager
from scribbl_relay.realtime.registry import RoomRegistry
from scribbl_relay.services.telemetry import RelayTelemetry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator


def make_socket(*frames: str) -> MagicMock:
    """Create a mock WebSocket that is open and yields ``frames`` when iterated."""
    ws = MagicMock()
    ws.connection_state = "connect"
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock()

    async def iter_data() -> AsyncIterator[str]:
        for frame in frames:
            yield frame
        ws.connection_state = "disconnect"

    ws.iter_data = iter_data
    return ws


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


# Relay fixtures


@pytest.fixture
def telemetry() -> RelayTelemetry:
    """Create a fresh telemetry service for each test."""
    return RelayTelemetry()


@pytest.fixture
async def registry(telemetry: RelayTelemetry) -> AsyncIterator[RoomRegistry]:
    """Create an empty registry and cancel its timers after the test."""
    registry = RoomRegistry(telemetry=telemetry)
    yield registry
    await registry.close()


@pytest.fixture
def manager() -> ConnectionManager:
    """Create a connection manager for testing."""
    return ConnectionManager()


@pytest.fixture
def handler(manager: ConnectionManager, registry: RoomRegistry, telemetry: RelayTelemetry) -> RelayWebSocketHandler:
    """Create a relay handler whose empty rooms are reclaimed almost immediately."""
    return RelayWebSocketHandler(manager, registry, room_ttl_seconds=0.05, telemetry=telemetry)


@pytest.fixture
def socket_factory() -> Callable[..., MagicMock]:
    """Provide the mock WebSocket factory to tests."""
    return make_socket


@pytest.fixture
def connect(manager: ConnectionManager) -> Callable[[], tuple[Any, MagicMock]]:
    """Register a new mock client with the manager and return it with its socket."""

    def _connect() -> tuple[Any, MagicMock]:
        ws = make_socket()
        return manager.register(ws), ws

    return _connect


# App and client fixtures


@pytest.fixture
def app(telemetry: RelayTelemetry) -> Litestar:
    """Create a Litestar app with RelayPlugin for testing."""
    config = RelayConfig(registry=RoomRegistry(telemetry=telemetry), telemetry=telemetry)
    return Litestar(plugins=[RelayPlugin(config)])


@pytest.fixture
def client(app: Litestar) -> Iterator[TestClient[Litestar]]:
    """Create a test client for the app."""
    with TestClient(app=app) as client:
        yield client
