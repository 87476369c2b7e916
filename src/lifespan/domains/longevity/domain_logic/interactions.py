"""Interaction effects between health behaviors.

Some behaviors amplify or blunt each other's benefits. Each rule inspects the
representative values of the metrics involved and, when it fires, multiplies
the positive daily impact of the affected metrics. Penalties are left
untouched. Adjusted impacts are re-clamped to each metric's caps, so an
interaction can never push a metric past its table bounds.

Rules:
    Sleep-Exercise Synergy   sleep 7-8.5 h and exercise >= 20 min/day  x1.15 sleep, exercise
    Alcohol-HRV Impact       any alcohol                                x0.75 HRV
    Weight-Activity Impact   body mass over 90.7 kg (200 lb)            x0.9 per 9.07 kg excess on steps, exercise
    Stress-Sleep Impact      stress above 6/10                          x0.85 sleep
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from lifespan.domains.longevity.domain_logic.models import METRIC_ORDER, MetricType
from lifespan.domains.longevity.tables.registry import DoseResponseTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Coefficients
# ---------------------------------------------------------------------------

SLEEP_EXERCISE_SYNERGY = 1.15
ALCOHOL_HRV_ANTAGONISM = 0.75
STRESS_SLEEP_ANTAGONISM = 0.85

OPTIMAL_SLEEP_HOURS = (7.0, 8.5)
OPTIMAL_EXERCISE_MINUTES = 20.0     # ~150 min/week
HIGH_STRESS_LEVEL = 6.0

BODY_MASS_THRESHOLD_KG = 90.718     # 200 lb
BODY_MASS_STEP_KG = 9.0718          # 20 lb
BODY_MASS_REDUCTION = 0.90


@dataclass(frozen=True)
class InteractionEffect:
    """One active interaction and the metrics it rescales."""

    title: str
    description: str
    multiplier: float
    affected: tuple[MetricType, ...]

    @property
    def is_positive(self) -> bool:
        return self.multiplier > 1.0

    @property
    def modifier_text(self) -> str:
        return f"{(self.multiplier - 1.0) * 100:+.0f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "modifier": self.modifier_text,
            "is_positive": self.is_positive,
            "affected": [t.value for t in self.affected],
        }


def detect_interactions(values: Mapping[MetricType, float]) -> list[InteractionEffect]:
    """Return the interactions active for the given representative values."""
    effects: list[InteractionEffect] = []

    sleep = values.get(MetricType.SLEEP_HOURS)
    exercise = values.get(MetricType.EXERCISE_MINUTES)
    if sleep is not None and exercise is not None:
        low, high = OPTIMAL_SLEEP_HOURS
        if low <= sleep <= high and exercise >= OPTIMAL_EXERCISE_MINUTES:
            effects.append(InteractionEffect(
                title="Sleep-Exercise Synergy",
                description="Good sleep and regular exercise are amplifying each other's benefits",
                multiplier=SLEEP_EXERCISE_SYNERGY,
                affected=(MetricType.SLEEP_HOURS, MetricType.EXERCISE_MINUTES),
            ))

    alcohol = values.get(MetricType.ALCOHOL_CONSUMPTION)
    if alcohol is not None and alcohol > 0 and MetricType.HEART_RATE_VARIABILITY in values:
        effects.append(InteractionEffect(
            title="Alcohol-HRV Impact",
            description="Alcohol consumption is reducing heart rate variability benefits",
            multiplier=ALCOHOL_HRV_ANTAGONISM,
            affected=(MetricType.HEART_RATE_VARIABILITY,),
        ))

    body_mass = values.get(MetricType.BODY_MASS)
    if body_mass is not None and body_mass > BODY_MASS_THRESHOLD_KG:
        excess = body_mass - BODY_MASS_THRESHOLD_KG
        effects.append(InteractionEffect(
            title="Weight-Activity Impact",
            description="Higher body mass is reducing the benefits of activity",
            multiplier=BODY_MASS_REDUCTION ** (excess / BODY_MASS_STEP_KG),
            affected=(MetricType.STEPS, MetricType.EXERCISE_MINUTES),
        ))

    stress = values.get(MetricType.STRESS_LEVEL)
    if stress is not None and stress > HIGH_STRESS_LEVEL and MetricType.SLEEP_HOURS in values:
        effects.append(InteractionEffect(
            title="Stress-Sleep Impact",
            description="High stress is reducing sleep benefits",
            multiplier=STRESS_SLEEP_ANTAGONISM,
            affected=(MetricType.SLEEP_HOURS,),
        ))

    return effects


def apply_interactions(
    daily_minutes: Mapping[MetricType, float],
    values: Mapping[MetricType, float],
    table: DoseResponseTable,
) -> dict[MetricType, float]:
    """Rescale positive daily impacts by every active interaction.

    Returns a new mapping; the input is not modified.
    """
    adjusted = dict(daily_minutes)
    for effect in detect_interactions(values):
        logger.debug("Applying interaction %s (%s)", effect.title, effect.modifier_text)
        for metric_type in effect.affected:
            minutes = adjusted.get(metric_type)
            if minutes is None or minutes <= 0:
                continue
            scaled = minutes * effect.multiplier
            profile = table.get(metric_type)
            adjusted[metric_type] = profile.clamp_impact(scaled) if profile else scaled

    return {t: adjusted[t] for t in sorted(adjusted, key=METRIC_ORDER.__getitem__)}
