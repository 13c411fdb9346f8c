"""Command line extensions for scribbl-relay."""

from scribbl_relay.cli.relay import RelayCLIPlugin, relay_group

__all__ = ["RelayCLIPlugin", "relay_group"]
