"""Liveness and readiness probes.

The relay keeps everything in memory and talks to no backing services, so
the probes only report on the process itself and the room registry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar

from litestar import Controller, get

from scribbl_relay import __version__
from scribbl_relay.realtime.registry import RoomRegistry  # noqa: TC001


class HealthStatus(str, Enum):
    """Probe outcome, ordered from best to worst."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


_SEVERITY = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.UNHEALTHY]


@dataclass
class ComponentHealth:
    """Probe result for one part of the relay."""

    name: str
    status: HealthStatus
    message: str | None = None


@dataclass
class HealthReport:
    """Body of the liveness probe."""

    components: list[ComponentHealth]
    version: str = __version__
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def status(self) -> HealthStatus:
        """The worst status among the components."""
        return max((c.status for c in self.components), key=_SEVERITY.index, default=HealthStatus.HEALTHY)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, with the overall status first."""
        return {"status": self.status.value, **asdict(self)}


def registry_health(registry: RoomRegistry) -> ComponentHealth:
    """Summarize the room registry as a probe component."""
    return ComponentHealth(
        name="room_registry",
        status=HealthStatus.HEALTHY,
        message=(
            f"{registry.active_rooms} rooms, {registry.total_members} members, "
            f"{registry.pending_reclamations} awaiting reclamation"
        ),
    )


class HealthController(Controller):
    """Probe endpoints for container orchestration and load balancers."""

    path = ""
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(self, registry: RoomRegistry) -> dict[str, Any]:
        """Liveness probe.

        Returns:
            Overall status plus one entry per component.
        """
        report = HealthReport(
            components=[
                ComponentHealth(name="application", status=HealthStatus.HEALTHY, message="Relay is accepting connections"),
                registry_health(registry),
            ]
        )
        return report.to_dict()

    @get("/ready")
    async def ready(self, registry: RoomRegistry) -> dict[str, Any]:
        """Readiness probe.

        Returns:
            Whether the relay can take traffic, with the checks behind it.
        """
        checks = {"application": True, "room_registry": registry is not None}
        return {
            "ready": all(checks.values()),
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        }
