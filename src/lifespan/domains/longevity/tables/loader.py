"""Dose-response table loader: reads the calibrated YAML table from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from lifespan.domains.longevity.domain_logic.models import MetricType, ScalingClass
from lifespan.domains.longevity.tables.models import (
    ImpactBand,
    ImprovementRule,
    ImprovementTier,
    MetricProfile,
    TableMetadata,
)
from lifespan.domains.longevity.tables.registry import DoseResponseTable

logger = logging.getLogger(__name__)

# The packaged table lives under src/lifespan/domains/longevity/data/
DEFAULT_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "dose_response.v1.yaml"


class DoseResponseTableError(ValueError):
    """Raised when a table file is missing, malformed, or fails validation."""


def load_table_file(path: str | Path) -> DoseResponseTable:
    """Parse a YAML table file into a DoseResponseTable (structure only)."""
    path = Path(path)
    if not path.is_file():
        raise DoseResponseTableError(f"Dose-response table not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise DoseResponseTableError(f"{path}: invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise DoseResponseTableError(f"{path}: top level must be a mapping")

    table = parse_table(data, origin=str(path))
    logger.info(
        "Loaded dose-response table %s (v%s) with %d metrics from %s",
        table.metadata.id,
        table.metadata.version,
        len(table),
        path,
    )
    return table


def parse_table(data: dict[str, Any], *, origin: str = "<memory>") -> DoseResponseTable:
    """Build a table from an already-parsed mapping."""
    metadata = TableMetadata(
        id=str(data.get("id", "dose_response")),
        version=str(data.get("version", "0")),
        description=str(data.get("description", "")).strip(),
        sources=tuple(str(s) for s in data.get("sources", []) or []),
    )
    metrics = data.get("metrics")
    if not isinstance(metrics, dict) or not metrics:
        raise DoseResponseTableError(f"{origin}: 'metrics' must be a non-empty mapping")

    table = DoseResponseTable(metadata)
    for name, row in metrics.items():
        try:
            table.register(parse_profile(str(name), row))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise DoseResponseTableError(f"{origin}: metric {name!r}: {exc}") from exc
    return table


def parse_profile(name: str, row: dict[str, Any]) -> MetricProfile:
    """Parse one ``metrics.<name>`` block."""
    if not isinstance(row, dict):
        raise TypeError("definition must be a mapping")

    metric_type = MetricType(name)
    domain_min, domain_max = _pair(row["domain"], "domain")
    min_impact, max_impact = _pair(row["impact_range"], "impact_range")

    return MetricProfile(
        metric_type=metric_type,
        display_name=str(row.get("display_name", metric_type.display_name)),
        unit=str(row.get("unit", "")),
        domain_min=domain_min,
        domain_max=domain_max,
        neutral_value=float(row["neutral"]),
        coefficient=float(row.get("coefficient", 0.0)),
        min_impact=min_impact,
        max_impact=max_impact,
        higher_is_better=bool(row["higher_is_better"]),
        scaling=ScalingClass(row["scaling"]),
        representative=str(row.get("representative", "latest")),
        bands=tuple(
            ImpactBand(upper=upper, minutes=minutes)
            for upper, minutes in (_pair(b, "band") for b in row.get("bands", []) or [])
        ),
        improvement=_parse_improvement(row.get("improvement") or {}),
        action=str(row.get("action", "")).strip(),
        evidence=str(row.get("evidence", "moderate")),
        reference=str(row.get("reference", "")).strip(),
    )


def _parse_improvement(data: dict[str, Any]) -> ImprovementRule:
    if not isinstance(data, dict):
        raise TypeError("improvement must be a mapping")
    tiers = []
    for t in data.get("tiers", []) or []:
        # 'below' reads naturally for higher-is-better metrics, 'above' for the rest.
        bound = t.get("below", t.get("above"))
        tiers.append(ImprovementTier(bound=_opt_float(bound), delta=float(t["delta"])))
    return ImprovementRule(
        kind=str(data.get("kind", "proportional")),
        delta=float(data.get("delta", 0.0)),
        fraction=float(data.get("fraction", 0.05)),
        tiers=tuple(tiers),
        threshold=_opt_float(data.get("threshold")),
        target=_opt_float(data.get("target")),
        ceiling=_opt_float(data.get("ceiling")),
        floor=_opt_float(data.get("floor")),
    )


def _pair(value: Any, label: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{label} must be a two-element list")
    return float(value[0]), float(value[1])


def _opt_float(value: Any) -> float | None:
    return None if value is None else float(value)
