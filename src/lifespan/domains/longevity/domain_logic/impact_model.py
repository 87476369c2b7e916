"""Per-metric dose-response model: one reading to a daily lifespan impact.

Every metric is evaluated from its ``MetricProfile`` row:

  continuous   deviation from the neutral value (signed by the better
               direction) times the coefficient, clamped to the impact caps
  threshold    piecewise-constant bands (smoking status), clamped the same way

Readings are clamped to the metric's domain before evaluation. Values that
are not finite numbers, and metric types the table does not cover, evaluate
to a neutral impact instead of raising.
"""

from __future__ import annotations

import logging

from lifespan.domains.longevity.domain_logic.models import (
    HealthMetric,
    ImpactValue,
    MetricType,
    is_finite_number,
)
from lifespan.domains.longevity.tables.models import MetricProfile
from lifespan.domains.longevity.tables.registry import DoseResponseTable

logger = logging.getLogger(__name__)


class MetricImpactModel:
    """Pure reading-to-impact function backed by a dose-response table.

    Usage::

        model = MetricImpactModel(default_table())
        impact = model.impact_of(metric)
        minutes = model.daily_minutes(MetricType.STEPS, 4000)
    """

    def __init__(self, table: DoseResponseTable) -> None:
        self._table = table

    @property
    def table(self) -> DoseResponseTable:
        return self._table

    def impact_of(self, metric: HealthMetric) -> ImpactValue:
        """Daily impact of a single reading."""
        return self.impact_of_value(metric.type, metric.value)

    def impact_of_value(self, metric_type: MetricType, value: float) -> ImpactValue:
        return ImpactValue.from_minutes(self.daily_minutes(metric_type, value))

    def daily_minutes(self, metric_type: MetricType, value: float) -> float:
        """Signed, capped impact minutes per day for ``value``."""
        profile = self._table.get(metric_type)
        if profile is None:
            logger.debug("No dose-response profile for %s; treating as neutral", metric_type)
            return 0.0
        if not is_finite_number(value):
            logger.debug("Non-numeric reading for %s; treating as neutral", metric_type.value)
            return 0.0

        clamped = profile.clamp_to_domain(float(value))
        if clamped != value:
            logger.debug(
                "Clamped %s reading %r to domain [%s, %s]",
                metric_type.value, value, profile.domain_min, profile.domain_max,
            )

        if profile.is_threshold:
            raw = _band_minutes(profile, clamped)
        else:
            raw = _continuous_minutes(profile, clamped)
        return profile.clamp_impact(raw)


def _continuous_minutes(profile: MetricProfile, value: float) -> float:
    if profile.higher_is_better:
        deviation = value - profile.neutral_value
    else:
        deviation = profile.neutral_value - value
    return deviation * profile.coefficient


def _band_minutes(profile: MetricProfile, value: float) -> float:
    for band in profile.bands:
        if value <= band.upper:
            return band.minutes
    # Validated tables cover the domain, so this only guards hand-built profiles.
    return profile.bands[-1].minutes
