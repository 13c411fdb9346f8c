"""HTTP layer for scribbl-relay."""

from scribbl_relay.web.controllers import StatusController
from scribbl_relay.web.health import HealthController
from scribbl_relay.web.router import create_router
from scribbl_relay.web.stats_controller import StatsController

__all__ = ["HealthController", "StatsController", "StatusController", "create_router"]
