"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Lifespan engine and server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: the MCP server has no auth layer. Opt into `0.0.0.0`
    # explicitly when you intend remote access.
    lifespan_host: str = "127.0.0.1"
    lifespan_port: int = 8003
    lifespan_log_level: str = "info"
    # streamable-http | http | sse | stdio
    lifespan_transport: str = "streamable-http"
    # Binding to a non-loopback host is refused unless this is set true.
    lifespan_allow_insecure_bind: bool = False

    # Dose-response table (empty = packaged dose_response.v1.yaml)
    dose_response_table_path: str = ""

    # Projection
    default_life_expectancy_years: float = 78.0
    # Yearly fade of a sustained habit (0 = fully sustained, 0.02 = conservative)
    behavior_decay_rate: float = 0.0
    # Scale projected effects by the evidence strength of the tracked curves
    evidence_weighting: bool = False

    # Recommendations
    min_benefit_minutes: float = 1.0
    fallback_benefit_minutes: float = 5.0

    # Engine
    impact_cache_size: int = 1024  # 0 disables memoization
    apply_interactions: bool = False


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
