"""Lifespan MCP Server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from lifespan.core.config.settings import get_settings
from lifespan.domains.longevity.domain_logic.engine import LongevityEngine
from lifespan.domains.longevity.tools.engine_tools import register_engine_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Lifespan Impact"
SERVER_VERSION = "0.1.0"


def create_app(*, engine_override: LongevityEngine | None = None) -> FastMCP:
    """Create and configure the Lifespan Impact MCP server.

    1. Creates the FastMCP server instance
    2. Builds the longevity engine (dose-response table from settings)
    3. Registers the engine tools and health_check
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Converts health-behavior readings into lifespan-impact minutes, "
            "aggregates them over days, months and years, projects adjusted life "
            "expectancy, and recommends the single most valuable behavior change."
        ),
    )

    # --- Engine ---
    engine = engine_override or LongevityEngine.from_settings(settings)
    table = engine.table.metadata
    logger.info("Dose-response table %s v%s (%d metrics)", table.id, table.version, len(engine.table))

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "table_id": table.id,
            "table_version": table.version,
            "metrics_loaded": len(engine.table),
            "interactions_enabled": engine.aggregator.apply_interactions,
        }

    register_engine_tools(server, engine)
    logger.info("Longevity engine tools registered")

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
