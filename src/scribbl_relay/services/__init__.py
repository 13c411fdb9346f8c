"""Supporting services for scribbl-relay."""

from scribbl_relay.services.telemetry import RelayTelemetry

__all__ = ["RelayTelemetry"]
