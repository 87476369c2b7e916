"""Dose-response table validator: ensures table definitions are well-formed."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from lifespan.domains.longevity.domain_logic.models import ScalingClass
from lifespan.domains.longevity.tables.loader import (
    DEFAULT_TABLE_PATH,
    DoseResponseTableError,
    load_table_file,
)
from lifespan.domains.longevity.tables.models import EVIDENCE_RELIABILITY, MetricProfile
from lifespan.domains.longevity.tables.registry import DoseResponseTable

logger = logging.getLogger(__name__)

IMPROVEMENT_KINDS = {"step", "tiered", "proportional", "snap"}
REPRESENTATIVE_KINDS = {"latest", "mean"}


def validate_profile(profile: MetricProfile) -> list[str]:
    """Return human-readable problems with one profile (empty when valid)."""
    name = profile.metric_type.value
    errors: list[str] = []

    if profile.domain_min >= profile.domain_max:
        errors.append(f"{name}: domain minimum must be below maximum")
    if profile.min_impact > 0 or profile.max_impact < 0:
        errors.append(f"{name}: impact range must contain zero")
    if profile.min_impact > profile.max_impact:
        errors.append(f"{name}: impact range is inverted")
    if not profile.domain_min <= profile.neutral_value <= profile.domain_max:
        errors.append(f"{name}: neutral value lies outside the domain")
    if profile.coefficient < 0:
        errors.append(f"{name}: coefficient must be non-negative (direction is set separately)")
    if profile.representative not in REPRESENTATIVE_KINDS:
        errors.append(f"{name}: representative must be one of {sorted(REPRESENTATIVE_KINDS)}")

    if profile.bands:
        uppers = [b.upper for b in profile.bands]
        if uppers != sorted(uppers) or len(set(uppers)) != len(uppers):
            errors.append(f"{name}: band upper bounds must be strictly increasing")
        if uppers[-1] < profile.domain_max:
            errors.append(f"{name}: bands must cover the whole domain")
        minutes = [b.minutes for b in profile.bands]
        # Bands must respect the metric's better direction.
        expected = sorted(minutes, reverse=not profile.higher_is_better)
        if minutes != expected:
            errors.append(f"{name}: band impacts are not monotone in the better direction")
        if any(not profile.min_impact <= m <= profile.max_impact for m in minutes):
            errors.append(f"{name}: band impacts exceed the impact range")
    elif profile.coefficient == 0:
        errors.append(f"{name}: continuous metric needs a positive coefficient")

    rule = profile.improvement
    if rule.kind not in IMPROVEMENT_KINDS:
        errors.append(f"{name}: unknown improvement kind {rule.kind!r}")
    elif rule.kind == "step" and rule.delta <= 0:
        errors.append(f"{name}: step improvement needs a positive delta")
    elif rule.kind == "tiered" and (not rule.tiers or rule.tiers[-1].bound is not None):
        errors.append(f"{name}: tiered improvement needs a final catch-all tier")
    elif rule.kind == "proportional" and not 0 < rule.fraction < 1:
        errors.append(f"{name}: proportional fraction must be in (0, 1)")
    elif rule.kind == "snap" and (rule.threshold is None or rule.target is None):
        errors.append(f"{name}: snap improvement needs threshold and target")

    if not profile.action:
        errors.append(f"{name}: missing action text")
    if profile.evidence not in EVIDENCE_RELIABILITY:
        errors.append(f"{name}: evidence must be one of {sorted(EVIDENCE_RELIABILITY)}")

    return errors


def validate_table(table: DoseResponseTable) -> list[str]:
    """Validate every profile plus table-level invariants."""
    errors: list[str] = []
    for profile in table.all():
        errors.extend(validate_profile(profile))

    if not table.by_scaling(ScalingClass.RATE) and not table.by_scaling(ScalingClass.STATE):
        errors.append("table defines no metrics")

    version = table.metadata.version
    if version and not all(c.isdigit() or c == "." for c in version):
        errors.append(f"version '{version}' doesn't look like a version number")
    return errors


def validate_table_file(path: str | Path) -> tuple[DoseResponseTable | None, list[str]]:
    """Validate a table file.

    Returns: (table_or_none, errors)
    """
    try:
        table = load_table_file(path)
    except DoseResponseTableError as exc:
        return None, [str(exc)]
    return table, validate_table(table)


def load_validated_table(path: str | Path | None = None) -> DoseResponseTable:
    """Load a table and raise DoseResponseTableError if it fails validation."""
    path = Path(path) if path else DEFAULT_TABLE_PATH
    table, errors = validate_table_file(path)
    if errors or table is None:
        for err in errors:
            logger.error("%s", err)
        raise DoseResponseTableError(f"{path}: {len(errors)} validation error(s): " + "; ".join(errors))
    return table


@lru_cache(maxsize=1)
def default_table() -> DoseResponseTable:
    """The packaged table, loaded once per process."""
    return load_validated_table(DEFAULT_TABLE_PATH)
