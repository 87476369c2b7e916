"""Single prioritized behavior-change recommendation.

Each metric type is scored the way the aggregator scores it: its daily
impact over the readings, with the period's representative value standing
in for the type. The metric to act on is chosen in priority order:

  1. the most harmful metric (largest negative impact)
  2. otherwise the weakest positive contributor
  3. otherwise the first neutral metric in table order

Ties go to the metric listed first in the table. The quoted benefit comes
from simulating the metric's realistic improvement (declared in the table)
and re-running the impact model on it, starting from the representative value.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable

from lifespan.domains.longevity.domain_logic.aggregator import ImpactAggregator, group_readings
from lifespan.domains.longevity.domain_logic.formatting import format_benefit
from lifespan.domains.longevity.domain_logic.impact_model import MetricImpactModel
from lifespan.domains.longevity.domain_logic.models import (
    NEUTRAL_EPSILON,
    HealthMetric,
    MetricType,
    Recommendation,
    ScalingClass,
    TimePeriod,
)
from lifespan.domains.longevity.tables.models import MetricProfile

logger = logging.getLogger(__name__)

DEFAULT_MIN_BENEFIT_MINUTES = 1.0
DEFAULT_FALLBACK_BENEFIT_MINUTES = 5.0

_RATE_CADENCE = {
    TimePeriod.DAY: "today",
    TimePeriod.MONTH: "daily this month",
    TimePeriod.YEAR: "daily this year",
}
_STATE_CADENCE = {
    TimePeriod.DAY: "today",
    TimePeriod.MONTH: "this month",
    TimePeriod.YEAR: "this year",
}


def improved_value(profile: MetricProfile, value: float) -> float:
    """Apply the profile's improvement rule to ``value``.

    The result never moves in the worse direction, and ceilings/floors only
    stop further improvement (a reading already past them stays put).
    """
    rule = profile.improvement
    sign = 1.0 if profile.higher_is_better else -1.0

    if rule.kind == "step":
        improved = value + sign * rule.delta
    elif rule.kind == "tiered":
        delta = 0.0
        for tier in rule.tiers:
            if tier.bound is None or _worse_than(profile, value, tier.bound):
                delta = tier.delta
                break
        improved = value + sign * delta
    elif rule.kind == "snap":
        if rule.threshold is not None and rule.target is not None and _worse_than(profile, value, rule.threshold):
            improved = rule.target
        else:
            improved = value
    else:
        improved = value + sign * abs(value) * rule.fraction

    if rule.ceiling is not None:
        improved = min(improved, max(rule.ceiling, value))
    if rule.floor is not None:
        improved = max(improved, min(rule.floor, value))
    return profile.clamp_to_domain(improved)


def _worse_than(profile: MetricProfile, value: float, bound: float) -> bool:
    return value < bound if profile.higher_is_better else value > bound


class RecommendationEngine:
    """Picks one metric to act on and quotes the benefit of improving it."""

    def __init__(
        self,
        model: MetricImpactModel,
        *,
        aggregator: ImpactAggregator | None = None,
        min_benefit_minutes: float = DEFAULT_MIN_BENEFIT_MINUTES,
        fallback_benefit_minutes: float = DEFAULT_FALLBACK_BENEFIT_MINUTES,
    ) -> None:
        self._model = model
        self._table = model.table
        self._aggregator = aggregator or ImpactAggregator(model)
        self.min_benefit_minutes = min_benefit_minutes
        self.fallback_benefit_minutes = fallback_benefit_minutes

    def recommend(self, metrics: Iterable[HealthMetric], period: TimePeriod) -> Recommendation | None:
        metrics = list(metrics)
        groups = group_readings(metrics)
        if not groups:
            logger.debug("No usable readings; nothing to recommend")
            return None

        daily = self._aggregator.daily_impacts(metrics)
        scored = [
            (self._representative_reading(metric_type, readings), daily[metric_type])
            for metric_type, readings in groups.items()
        ]
        target = self._select(scored)

        benefit = self.benefit_minutes(target, period)
        recommendation = Recommendation(
            metric=target,
            action_text=self.action_text(target, period, benefit),
            benefit_minutes=benefit,
            period=period,
        )
        logger.debug("Recommending %s (benefit %.2f min)", target.type.value, benefit)
        return recommendation

    def _representative_reading(self, metric_type: MetricType, readings: list[HealthMetric]) -> HealthMetric:
        """Latest reading of the group, carrying the period's representative value."""
        latest = readings[-1]
        value = self._aggregator.representative_value(metric_type, readings)
        if value == latest.value:
            return latest
        return dataclasses.replace(latest, value=value)

    def _select(self, scored: list[tuple[HealthMetric, float]]) -> HealthMetric:
        # ``scored`` is in table order, so strict comparisons keep the first tie.
        negatives = [(m, v) for m, v in scored if v < -NEUTRAL_EPSILON]
        if negatives:
            return min(negatives, key=lambda item: item[1])[0]
        positives = [(m, v) for m, v in scored if v > NEUTRAL_EPSILON]
        if positives:
            return min(positives, key=lambda item: item[1])[0]
        return scored[0][0]

    def benefit_minutes(self, metric: HealthMetric, period: TimePeriod) -> float:
        """Quoted benefit for improving ``metric``, scoped to ``period``."""
        profile = self._table.get(metric.type)
        if profile is None:
            logger.debug("No profile for %s; using fallback benefit", metric.type.value)
            return self.fallback_benefit_minutes

        current = self._model.daily_minutes(metric.type, metric.value)
        simulated = metric.with_value(improved_value(profile, profile.clamp_to_domain(metric.value)))
        improved = self._model.daily_minutes(simulated.type, simulated.value)
        daily_benefit = max(self.min_benefit_minutes, improved - current)

        if profile.scaling == ScalingClass.RATE:
            return daily_benefit * period.days
        return daily_benefit

    def action_text(self, metric: HealthMetric, period: TimePeriod, benefit_minutes: float) -> str:
        profile = self._table.get(metric.type)
        if profile is None:
            action = f"Improve your {metric.type.display_name.lower()}"
            cadence = _STATE_CADENCE[period]
        else:
            action = profile.action
            cadence = (_RATE_CADENCE if profile.scaling == ScalingClass.RATE else _STATE_CADENCE)[period]
        return f"{action} {cadence} to add {format_benefit(benefit_minutes)}"
