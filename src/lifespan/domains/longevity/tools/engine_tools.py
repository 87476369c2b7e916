"""MCP tools exposing the longevity engine.

Readings are passed as plain JSON objects::

    {"type": "steps", "value": 4000, "date": "2026-01-15", "source": "healthkit"}

``id``, ``date`` and ``source`` are optional. Input that cannot be parsed
raises ValueError, which FastMCP reports back to the caller as a tool error.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any

from fastmcp import Context, FastMCP

from lifespan.domains.longevity.domain_logic.engine import LongevityEngine
from lifespan.domains.longevity.domain_logic.formatting import (
    confidence_description,
    describe_impact,
    format_period_impact,
)
from lifespan.domains.longevity.domain_logic.models import (
    DataCompleteness,
    Gender,
    HealthMetric,
    MetricSource,
    MetricType,
    TimePeriod,
    UserProfile,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------

def _enum_value(enum_cls, raw: str, label: str):
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Unknown {label} {raw!r}; expected one of: {allowed}") from None


def parse_metric_type(raw: str) -> MetricType:
    return _enum_value(MetricType, raw, "metric type")


def parse_period(raw: str) -> TimePeriod:
    return _enum_value(TimePeriod, raw, "period")


def parse_gender(raw: str) -> Gender | None:
    if not raw:
        return None
    return _enum_value(Gender, raw, "gender")


def parse_timestamp(raw: str) -> datetime:
    """ISO 8601 date or datetime; naive values are taken as UTC."""
    if not raw:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid date {raw!r}; expected ISO 8601 (e.g. '2026-01-15')") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_as_of(raw: str) -> date | None:
    return parse_timestamp(raw).date() if raw else None


def parse_metric(entry: dict[str, Any], index: int = 0) -> HealthMetric:
    if not isinstance(entry, dict):
        raise ValueError(f"Reading #{index} must be an object")
    if "type" not in entry or "value" not in entry:
        raise ValueError(f"Reading #{index} needs 'type' and 'value'")

    metric_type = parse_metric_type(entry["type"])
    value = entry["value"]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Reading #{index} value must be a number")

    return HealthMetric(
        id=str(entry.get("id") or f"{metric_type.value}-{index}"),
        type=metric_type,
        value=float(value),
        date=parse_timestamp(str(entry.get("date") or "")),
        source=_enum_value(MetricSource, entry.get("source") or "healthkit", "source"),
    )


def parse_metrics(entries: list[dict[str, Any]] | None) -> list[HealthMetric]:
    return [parse_metric(entry, i) for i, entry in enumerate(entries or [])]


# ---------------------------------------------------------------------------
# Tool registration
# ---------------------------------------------------------------------------

def register_engine_tools(mcp: FastMCP, engine: LongevityEngine) -> None:
    """Register the longevity engine tools on the MCP server."""

    @mcp.tool
    async def calculate_impact(
        ctx: Context,
        metric_type: str,
        value: float,
        reading_date: str = "",
    ) -> str:
        """Daily lifespan impact (minutes) of a single health reading.

        Args:
            metric_type: Metric name, e.g. 'steps', 'sleep_hours', 'smoking_status'.
            value: Reading value in the metric's unit (see the table's units).
            reading_date: Date of the reading (ISO 8601). Defaults to now.
        """
        metric = parse_metric({"type": metric_type, "value": value, "date": reading_date})
        impact = engine.calculate_impact(metric)
        profile = engine.table.get(metric.type)
        return json.dumps({
            "metric_type": metric.type.value,
            "value": metric.value,
            "impact": impact.to_dict(),
            "description": describe_impact(impact.lifespan_impact_minutes),
            "evidence": profile.evidence if profile else None,
            "reference": profile.reference if profile else None,
        })

    @mcp.tool
    async def aggregate_impact(
        ctx: Context,
        metrics: list[dict[str, Any]],
        period: str = "day",
        apply_interactions: bool | None = None,
    ) -> str:
        """Total lifespan impact of a set of readings over a day, month, or year.

        Args:
            metrics: Readings, each {"type", "value", "date"?, "id"?, "source"?}.
            period: 'day', 'month', or 'year'.
            apply_interactions: Apply behavior interaction effects. Defaults to server config.
        """
        readings = parse_metrics(metrics)
        time_period = parse_period(period)
        summary = engine.aggregate_impact(readings, time_period, apply_interactions=apply_interactions)
        result = summary.to_dict()
        result["formatted_total"] = format_period_impact(summary.total_impact.lifespan_impact_minutes)
        # Listed effects fire on these readings; the flag says whether the totals include them.
        result["interactions_applied"] = (
            engine.aggregator.apply_interactions if apply_interactions is None else apply_interactions
        )
        result["interactions"] = [e.to_dict() for e in engine.active_interactions(readings)]
        return json.dumps(result)

    @mcp.tool
    async def project_lifespan(
        ctx: Context,
        birth_year: int | None = None,
        gender: str = "",
        daily_total_minutes: float | None = None,
        metrics: list[dict[str, Any]] | None = None,
        tracked_metric_types: int | None = None,
        history_days: int | None = None,
        as_of: str = "",
    ) -> str:
        """Project adjusted life expectancy against a demographic baseline.

        Args:
            birth_year: Year of birth. Omit to use the population default.
            gender: 'male', 'female', or 'prefer_not_to_say'.
            daily_total_minutes: Signed daily impact total. Computed from `metrics` when omitted.
            metrics: Readings used to compute the daily total.
            tracked_metric_types: Number of metric types with data (confidence signal).
            history_days: Days of history behind the data (confidence signal).
            as_of: Calculation date (ISO 8601). Defaults to today.
        """
        profile = UserProfile(birth_year=birth_year, gender=parse_gender(gender))
        readings = parse_metrics(metrics)
        if daily_total_minutes is None:
            daily_total_minutes = engine.daily_total(readings)
        evidence_quality = engine.evidence_quality(readings) if engine.evidence_weighting else None

        completeness = None
        if tracked_metric_types is not None or history_days is not None:
            completeness = DataCompleteness(
                tracked_metric_types=tracked_metric_types or 0,
                history_days=history_days or 0,
            )

        projection = engine.project_lifespan(
            profile, daily_total_minutes, completeness, parse_as_of(as_of), evidence_quality
        )
        result = projection.to_dict()
        result.update({
            "daily_total_minutes": round(daily_total_minutes, 4),
            "net_impact_days": round(projection.net_impact_days, 1),
            "lower_bound_years": round(projection.lower_bound_years, 3),
            "upper_bound_years": round(projection.upper_bound_years, 3),
            "percentage_change": round(projection.percentage_change, 3),
            "confidence_description": confidence_description(projection.confidence_percentage),
            "evidence_quality": None if evidence_quality is None else round(evidence_quality, 4),
        })
        return json.dumps(result)

    @mcp.tool
    async def recommend(
        ctx: Context,
        metrics: list[dict[str, Any]],
        period: str = "day",
    ) -> str:
        """The single most valuable behavior change, with its estimated benefit.

        Args:
            metrics: Readings, each {"type", "value", "date"?, "id"?, "source"?}.
            period: 'day', 'month', or 'year'; scopes the quoted benefit.
        """
        recommendation = engine.recommend(parse_metrics(metrics), parse_period(period))
        if recommendation is None:
            return json.dumps({"status": "no_data", "recommendation": None})
        return json.dumps({"status": "ok", "recommendation": recommendation.to_dict()})

    logger.debug("Longevity engine tools registered")
