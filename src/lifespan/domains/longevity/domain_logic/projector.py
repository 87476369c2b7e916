"""Life expectancy projection from a signed daily impact total."""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone

from lifespan.domains.longevity.domain_logic.baseline import BaselineMortalityAdjuster
from lifespan.domains.longevity.domain_logic.models import (
    DAYS_PER_YEAR,
    MINUTES_PER_YEAR,
    DataCompleteness,
    LifeProjection,
    MetricType,
    UserProfile,
    is_finite_number,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Projection constants
# ---------------------------------------------------------------------------

MAX_LIFE_EXPECTANCY_YEARS = 120.0
MIN_HORIZON_YEARS = 1.0

# Age assumed for the horizon and interval when the profile has no birth year.
DEFAULT_AGE_YEARS = 30

MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 0.95
DEFAULT_CONFIDENCE = 0.4

COVERAGE_WEIGHT = 0.6
DEPTH_WEIGHT = 0.4
FULL_HISTORY_DAYS = 90
TOTAL_METRIC_TYPES = len(MetricType)

BASE_INTERVAL_YEARS = 2.0
UNCERTAINTY_INTERVAL_YEARS = 8.0

# Habits fade: a decay rate r discounts the horizon by exp(-r * horizon / 2).
# Zero keeps the habit fully sustained.
DEFAULT_BEHAVIOR_DECAY_RATE = 0.0


def _unit(x: float) -> float:
    return max(0.0, min(1.0, x))


def confidence_for(completeness: DataCompleteness | None) -> float:
    """Confidence in [MIN_CONFIDENCE, MAX_CONFIDENCE], rising with coverage and history."""
    if completeness is None:
        return DEFAULT_CONFIDENCE
    coverage = _unit(completeness.tracked_metric_types / TOTAL_METRIC_TYPES)
    depth = _unit(completeness.history_days / FULL_HISTORY_DAYS)
    blend = COVERAGE_WEIGHT * coverage + DEPTH_WEIGHT * depth
    return MIN_CONFIDENCE + (MAX_CONFIDENCE - MIN_CONFIDENCE) * blend


def decay_factor(decay_rate: float, horizon_years: float) -> float:
    """Share of a sustained habit's effect that survives over the horizon."""
    if decay_rate <= 0:
        return 1.0
    return math.exp(-decay_rate * horizon_years / 2.0)


def interval_for(confidence: float, age: float) -> float:
    """Full width of the confidence band in years; widens with age."""
    return (BASE_INTERVAL_YEARS + UNCERTAINTY_INTERVAL_YEARS * (1.0 - confidence)) * (1.0 + age / 100.0)


class LongevityProjector:
    """Turns a daily impact total into a ``LifeProjection``.

    The daily total is treated as a habit sustained over the remaining
    horizon (baseline minus current age, at least one year). Two optional
    dampers make the estimate more conservative: ``decay_rate`` fades the
    habit over the horizon, and ``evidence_quality`` (0-1, passed per call)
    scales the effect by how well the underlying curves are supported.
    """

    def __init__(
        self,
        baseline: BaselineMortalityAdjuster | None = None,
        *,
        decay_rate: float = DEFAULT_BEHAVIOR_DECAY_RATE,
    ) -> None:
        self._baseline = baseline or BaselineMortalityAdjuster()
        self.decay_rate = decay_rate

    def project(
        self,
        profile: UserProfile,
        daily_total_minutes: float,
        completeness: DataCompleteness | None = None,
        as_of: date | None = None,
        evidence_quality: float | None = None,
    ) -> LifeProjection:
        as_of = as_of or datetime.now(timezone.utc).date()
        baseline = self._baseline.baseline_for(profile, as_of)

        age = profile.age(as_of)
        if age is None:
            age = DEFAULT_AGE_YEARS

        if not is_finite_number(daily_total_minutes):
            logger.debug("Non-numeric daily total; projecting baseline only")
            daily_total_minutes = 0.0

        horizon = max(MIN_HORIZON_YEARS, baseline - age)
        lifetime_years = daily_total_minutes * DAYS_PER_YEAR * horizon / MINUTES_PER_YEAR
        lifetime_years *= decay_factor(self.decay_rate, horizon)
        if evidence_quality is not None and is_finite_number(evidence_quality):
            lifetime_years *= max(0.0, min(1.0, evidence_quality))
        adjusted = baseline + lifetime_years
        if adjusted < 0.0:
            logger.debug("Projection fell below zero (%.2f); flooring", adjusted)
            adjusted = 0.0
        adjusted = min(adjusted, MAX_LIFE_EXPECTANCY_YEARS)

        confidence = confidence_for(completeness)
        projection = LifeProjection(
            baseline_life_expectancy_years=baseline,
            adjusted_life_expectancy_years=adjusted,
            current_age=float(age),
            confidence_percentage=confidence,
            confidence_interval_years=interval_for(confidence, age),
            calculation_date=as_of,
        )
        logger.debug(
            "Projected %.2f years (baseline %.2f, confidence %.2f)",
            adjusted, baseline, confidence,
        )
        return projection
