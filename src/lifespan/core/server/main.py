"""Lifespan server entry point: ``python -m lifespan.core.server.main``.

Serves over Streamable HTTP by default. Set ``LIFESPAN_TRANSPORT=stdio`` to
run as a local subprocess server instead; stdio opens no socket, so the
bind check does not apply to it.
"""

from __future__ import annotations

import logging
from ipaddress import ip_address

from lifespan.core.config.settings import Settings, get_settings
from lifespan.core.server.app import create_app

logger = logging.getLogger(__name__)

HTTP_TRANSPORTS = {"streamable-http", "http", "sse"}
TRANSPORTS = HTTP_TRANSPORTS | {"stdio"}


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Raise RuntimeError when the configured listener would be unsafe or unknown."""
    transport = settings.lifespan_transport
    if transport not in TRANSPORTS:
        raise RuntimeError(f"Unknown LIFESPAN_TRANSPORT {transport!r}; expected one of {sorted(TRANSPORTS)}")
    if transport not in HTTP_TRANSPORTS or settings.lifespan_allow_insecure_bind:
        return
    if not _is_loopback_host(settings.lifespan_host):
        raise RuntimeError(
            f"Refusing to expose the Lifespan engine on non-loopback host {settings.lifespan_host!r}: "
            "the server has no auth layer. Set LIFESPAN_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )


def run() -> None:
    """Validate the listener settings, build the app, and serve."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.lifespan_log_level.upper(), logging.INFO))
    check_bind(settings)

    mcp = create_app()
    if settings.lifespan_transport == "stdio":
        logger.info("Serving Lifespan Impact over stdio")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Serving Lifespan Impact over %s on %s:%d",
        settings.lifespan_transport,
        settings.lifespan_host,
        settings.lifespan_port,
    )
    mcp.run(
        transport=settings.lifespan_transport,
        host=settings.lifespan_host,
        port=settings.lifespan_port,
    )


if __name__ == "__main__":
    run()
