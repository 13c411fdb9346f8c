"""Litestar plugin for scribbl-relay integration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from scribbl_relay.realtime.handler import create_websocket_handler
from scribbl_relay.realtime.manager import ConnectionManager
from scribbl_relay.realtime.registry import DEFAULT_ROOM_TTL_SECONDS, RoomRegistry
from scribbl_relay.services.telemetry import RelayTelemetry
from scribbl_relay.web.router import create_router

if TYPE_CHECKING:
    from litestar.config.app import AppConfig


@dataclass
class RelayConfig:
    """Configuration for the relay plugin.

    Attributes:
        ws_path: Path the relay WebSocket is served on. Defaults to "/ws".
        status_path: Base path for the status, health and stats routes.
            Defaults to the application root.
        enable_status_api: Whether to mount the HTTP status routes.
        room_ttl_seconds: How long a room must stay empty before it is
            removed from the registry. Defaults to one hour.
        registry: Optional pre-built RoomRegistry. If None, a new one is
            created.
        telemetry: Optional telemetry service. If None, each plugin gets
            its own, so apps in one process keep separate counters.

    Example:
        >>> config = RelayConfig(ws_path="/draw", room_ttl_seconds=600)
    """

    ws_path: str = "/ws"
    status_path: str = "/"
    enable_status_api: bool = True
    room_ttl_seconds: float = DEFAULT_ROOM_TTL_SECONDS
    registry: RoomRegistry | None = field(default=None)
    telemetry: RelayTelemetry | None = field(default=None)

    @classmethod
    def from_env(cls) -> RelayConfig:
        """Create settings from environment variables.

        Environment variables:
            RELAY_WS_PATH: WebSocket path.
            RELAY_ROOM_TTL_SECONDS: Reclamation delay for empty rooms.
            RELAY_STATUS_API: Set to "false" to disable the HTTP status routes.

        Returns:
            RelayConfig configured from environment.
        """
        return cls(
            ws_path=os.environ.get("RELAY_WS_PATH", "/ws"),
            room_ttl_seconds=float(os.environ.get("RELAY_ROOM_TTL_SECONDS", str(DEFAULT_ROOM_TTL_SECONDS))),
            enable_status_api=os.environ.get("RELAY_STATUS_API", "true").lower() != "false",
        )


class RelayPlugin(InitPluginProtocol):
    """Litestar plugin that mounts the drawing relay.

    On application init it builds the room registry, connection manager and
    telemetry service, registers them for dependency injection, mounts the
    WebSocket route and the HTTP status routes, and cancels pending room
    reclamation timers on shutdown.

    Example:
        >>> from litestar import Litestar
        >>> from scribbl_relay import RelayPlugin, RelayConfig
        >>>
        >>> app = Litestar(plugins=[RelayPlugin(RelayConfig())])
    """

    def __init__(self, config: RelayConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, RelayConfig with default
                values will be used.
        """
        self._config = config or RelayConfig()
        self._registry: RoomRegistry | None = None
        self._connection_manager: ConnectionManager | None = None
        self._telemetry: RelayTelemetry | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Wire the relay into the application being built.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        self._telemetry = self._config.telemetry or RelayTelemetry()
        self._registry = self._config.registry or RoomRegistry(telemetry=self._telemetry)
        self._connection_manager = ConnectionManager()

        def provide_registry() -> RoomRegistry:
            """Dependency provider for the RoomRegistry."""
            return self.registry

        def provide_connection_manager() -> ConnectionManager:
            """Dependency provider for the ConnectionManager."""
            return self.connection_manager

        def provide_telemetry() -> RelayTelemetry:
            """Dependency provider for RelayTelemetry."""
            return self.telemetry

        app_config.dependencies["registry"] = Provide(provide_registry, sync_to_thread=False)
        app_config.dependencies["connection_manager"] = Provide(provide_connection_manager, sync_to_thread=False)
        app_config.dependencies["telemetry"] = Provide(provide_telemetry, sync_to_thread=False)

        app_config.route_handlers.append(
            create_websocket_handler(
                path=self._config.ws_path,
                connection_manager=self._connection_manager,
                registry=self._registry,
                room_ttl_seconds=self._config.room_ttl_seconds,
                telemetry=self._telemetry,
            )
        )

        if self._config.enable_status_api:
            app_config.route_handlers.append(create_router(path=self._config.status_path))

        app_config.on_shutdown.append(self._registry.close)

        return app_config

    @property
    def registry(self) -> RoomRegistry:
        """Get the initialized room registry.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._registry is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._registry

    @property
    def connection_manager(self) -> ConnectionManager:
        """Get the initialized connection manager.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._connection_manager is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._connection_manager

    @property
    def telemetry(self) -> RelayTelemetry:
        """Get the telemetry service.

        Raises:
            RuntimeError: If the plugin has not been initialized yet.
        """
        if self._telemetry is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._telemetry
