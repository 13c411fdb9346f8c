"""Application plumbing for scribbl-relay: logging, error handling, OpenAPI."""

from scribbl_relay.core.error_handling import ErrorResponse, get_exception_handlers
from scribbl_relay.core.logging import CorrelationIdMiddleware, RequestLoggingMiddleware, configure_logging
from scribbl_relay.core.openapi import get_openapi_plugins

__all__ = [
    "CorrelationIdMiddleware",
    "ErrorResponse",
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_exception_handlers",
    "get_openapi_plugins",
]
