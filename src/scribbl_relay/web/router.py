"""Router configuration for the relay's HTTP API."""

from __future__ import annotations

from litestar import Router

from scribbl_relay.web.controllers import StatusController
from scribbl_relay.web.health import HealthController
from scribbl_relay.web.stats_controller import StatsController


def create_router(path: str = "/") -> Router:
    """Create the relay's HTTP router.

    Args:
        path: Base path for the status, health and stats routes. Defaults
            to the application root, where clients expect ``GET /`` and
            ``GET /room/{room_id}``.

    Returns:
        A configured Litestar Router instance.
    """
    return Router(
        path=path,
        route_handlers=[StatusController, HealthController, StatsController],
    )
