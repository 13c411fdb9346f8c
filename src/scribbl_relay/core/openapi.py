"""OpenAPI UI plugins for the relay's status API."""

from __future__ import annotations

from litestar.openapi.plugins import ScalarRenderPlugin, SwaggerRenderPlugin


def get_openapi_plugins() -> list[ScalarRenderPlugin | SwaggerRenderPlugin]:
    """Get the configured OpenAPI UI plugins.

    Returns:
        Scalar served at ``/schema/`` and Swagger at ``/schema/swagger``.
    """
    return [ScalarRenderPlugin(path="/"), SwaggerRenderPlugin(path="/swagger")]
