"""Main Litestar application for scribbl-relay.

This module provides the application factory and the configured app
instance for running the relay as a standalone server::

    uvicorn scribbl_relay.app:app --port 3001

or through the ``scribbl-relay`` console script, which honours ``$PORT``.
"""

from __future__ import annotations

import os

from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.openapi import OpenAPIConfig

from scribbl_relay import __version__
from scribbl_relay.cli import RelayCLIPlugin
from scribbl_relay.core.error_handling import get_exception_handlers
from scribbl_relay.core.logging import CorrelationIdMiddleware, RequestLoggingMiddleware, configure_logging
from scribbl_relay.core.openapi import get_openapi_plugins
from scribbl_relay.plugin import RelayConfig, RelayPlugin


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def create_app(
    *,
    config: RelayConfig | None = None,
    debug: bool = False,
    json_logs: bool = False,
) -> Litestar:
    """Create and configure the Litestar application.

    Args:
        config: Relay configuration. Defaults to ``RelayConfig.from_env()``.
        debug: Whether to enable debug mode and debug level logs.
        json_logs: Whether to output logs as JSON (for production).

    Returns:
        Configured Litestar application instance.
    """
    configure_logging(debug=debug, json_logs=json_logs)

    return Litestar(
        plugins=[RelayPlugin(config or RelayConfig.from_env()), RelayCLIPlugin()],
        debug=debug,
        middleware=[CorrelationIdMiddleware, RequestLoggingMiddleware],
        exception_handlers=get_exception_handlers(),
        cors_config=CORSConfig(allow_origins=["*"]),
        openapi_config=OpenAPIConfig(
            title="scribbl-relay API",
            version=__version__,
            description="Room status endpoints for the collaborative drawing relay",
            path="/schema",
            render_plugins=get_openapi_plugins(),
            use_handler_docstrings=True,
        ),
    )


# Default application instance for uvicorn and `litestar run`
app = create_app(debug=_env_flag("RELAY_DEBUG"), json_logs=_env_flag("RELAY_JSON_LOGS"))


def run() -> None:
    """Serve the default app with uvicorn on ``$HOST:$PORT`` (port 3001 unless set)."""
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "3001")))  # noqa: S104
