"""Period-scoped impact aggregation.

Daily impacts extend to longer periods according to each metric's scaling
class in the dose-response table:

  rate   mean daily impact of the readings, times the days in the period
  state  impact evaluated once at the period's representative value
         (latest reading or mean of readings), never multiplied by days

Readings are put in a canonical order and sums use ``math.fsum``, so the
result does not depend on the order the readings arrive in.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from lifespan.domains.longevity.domain_logic import interactions
from lifespan.domains.longevity.domain_logic.impact_model import MetricImpactModel
from lifespan.domains.longevity.domain_logic.models import (
    HealthMetric,
    ImpactValue,
    LifeImpactData,
    MetricType,
    ScalingClass,
    TimePeriod,
    is_finite_number,
)

logger = logging.getLogger(__name__)


def group_readings(metrics: Iterable[HealthMetric]) -> dict[MetricType, list[HealthMetric]]:
    """Group usable readings by type, in canonical order.

    Readings whose value is not a finite number carry no information and
    are dropped.
    """
    groups: dict[MetricType, list[HealthMetric]] = {}
    for metric in sorted(metrics, key=HealthMetric.sort_key):
        if not is_finite_number(metric.value):
            logger.debug("Skipping non-numeric %s reading %s", metric.type.value, metric.id)
            continue
        groups.setdefault(metric.type, []).append(metric)
    return groups


def mean_value(readings: list[HealthMetric]) -> float:
    return math.fsum(r.value for r in readings) / len(readings)


class ImpactAggregator:
    """Combines per-reading impacts into a ``LifeImpactData`` summary."""

    def __init__(self, model: MetricImpactModel, *, apply_interactions: bool = False) -> None:
        self._model = model
        self._table = model.table
        self.apply_interactions = apply_interactions

    def representative_value(self, metric_type: MetricType, readings: list[HealthMetric]) -> float:
        """The single value a group of readings stands for over a period."""
        profile = self._table.get(metric_type)
        if profile is not None and profile.scaling == ScalingClass.STATE and profile.representative == "latest":
            return readings[-1].value
        return mean_value(readings)

    def daily_impacts(
        self,
        metrics: Iterable[HealthMetric],
        *,
        apply_interactions: bool | None = None,
    ) -> dict[MetricType, float]:
        """Per-type daily impact minutes, before period scaling."""
        groups = group_readings(metrics)
        daily: dict[MetricType, float] = {}
        values: dict[MetricType, float] = {}

        for metric_type, readings in groups.items():
            value = self.representative_value(metric_type, readings)
            values[metric_type] = value
            if self._table.scaling_of(metric_type) == ScalingClass.RATE:
                daily[metric_type] = math.fsum(
                    self._model.daily_minutes(metric_type, r.value) for r in readings
                ) / len(readings)
            else:
                daily[metric_type] = self._model.daily_minutes(metric_type, value)

        use_interactions = self.apply_interactions if apply_interactions is None else apply_interactions
        if use_interactions and daily:
            daily = interactions.apply_interactions(daily, values, self._table)
        return daily

    def aggregate(
        self,
        metrics: Iterable[HealthMetric],
        period: TimePeriod,
        *,
        apply_interactions: bool | None = None,
    ) -> LifeImpactData:
        daily = self.daily_impacts(metrics, apply_interactions=apply_interactions)
        if not daily:
            logger.debug("No usable readings; returning neutral %s aggregate", period.value)
            return LifeImpactData.empty(period)

        contributions: dict[MetricType, ImpactValue] = {}
        scaled_minutes: list[float] = []
        for metric_type, minutes in daily.items():
            if self._table.scaling_of(metric_type) == ScalingClass.RATE:
                minutes = minutes * period.days
            scaled_minutes.append(minutes)
            contributions[metric_type] = ImpactValue.from_minutes(minutes)

        total = ImpactValue.from_minutes(math.fsum(scaled_minutes))
        logger.debug(
            "Aggregated %d metric types over %s: %.4f minutes",
            len(contributions), period.value, total.lifespan_impact_minutes,
        )
        return LifeImpactData(
            time_period=period,
            total_impact=total,
            metric_contributions=contributions,
        )

    def daily_total(self, metrics: Iterable[HealthMetric], *, apply_interactions: bool | None = None) -> float:
        """Signed daily total across all metric types."""
        return self.aggregate(
            metrics, TimePeriod.DAY, apply_interactions=apply_interactions
        ).total_impact.lifespan_impact_minutes
