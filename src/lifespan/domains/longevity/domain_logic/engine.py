"""LongevityEngine: the four public operations behind one object.

Usage::

    engine = LongevityEngine.from_settings()
    impact = engine.calculate_impact(metric)
    summary = engine.aggregate_impact(metrics, TimePeriod.MONTH)
    projection = engine.project_lifespan(profile, engine.daily_total(metrics), completeness)
    recommendation = engine.recommend(metrics, TimePeriod.DAY)

The module-level functions of the same names delegate to a process-wide
engine built from the current settings.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import date
from functools import lru_cache

from lifespan.core.config.settings import Settings, get_settings
from lifespan.domains.longevity.domain_logic.aggregator import ImpactAggregator, group_readings
from lifespan.domains.longevity.domain_logic.baseline import BaselineMortalityAdjuster
from lifespan.domains.longevity.domain_logic.impact_model import MetricImpactModel
from lifespan.domains.longevity.domain_logic.interactions import InteractionEffect, detect_interactions
from lifespan.domains.longevity.domain_logic.models import (
    DEFAULT_LIFE_EXPECTANCY_YEARS,
    DataCompleteness,
    HealthMetric,
    ImpactValue,
    LifeImpactData,
    LifeProjection,
    MetricType,
    Recommendation,
    TimePeriod,
    UserProfile,
    is_finite_number,
)
from lifespan.domains.longevity.domain_logic.projector import LongevityProjector
from lifespan.domains.longevity.domain_logic.recommender import RecommendationEngine
from lifespan.domains.longevity.tables.registry import DoseResponseTable
from lifespan.domains.longevity.tables.validator import default_table, load_validated_table

logger = logging.getLogger(__name__)


class CachedImpactModel(MetricImpactModel):
    """Impact model that memoizes single-reading results by (type, value)."""

    def __init__(self, table: DoseResponseTable, maxsize: int) -> None:
        super().__init__(table)
        self._cached = lru_cache(maxsize=maxsize)(super().daily_minutes)

    def daily_minutes(self, metric_type: MetricType, value: float) -> float:
        # Only plain finite numbers are cache keys (True would collide with 1).
        if not is_finite_number(value):
            return super().daily_minutes(metric_type, value)
        return self._cached(metric_type, value)

    def cache_info(self):
        return self._cached.cache_info()


class LongevityEngine:
    """Facade wiring the impact model, aggregator, projector and recommender."""

    def __init__(
        self,
        table: DoseResponseTable | None = None,
        *,
        default_life_expectancy_years: float = DEFAULT_LIFE_EXPECTANCY_YEARS,
        min_benefit_minutes: float = 1.0,
        fallback_benefit_minutes: float = 5.0,
        impact_cache_size: int = 1024,
        apply_interactions: bool = False,
        behavior_decay_rate: float = 0.0,
        evidence_weighting: bool = False,
    ) -> None:
        self.table = table if table is not None else default_table()
        if impact_cache_size > 0:
            self.model: MetricImpactModel = CachedImpactModel(self.table, impact_cache_size)
        else:
            self.model = MetricImpactModel(self.table)
        self.baseline = BaselineMortalityAdjuster(default_life_expectancy_years)
        self.aggregator = ImpactAggregator(self.model, apply_interactions=apply_interactions)
        self.projector = LongevityProjector(self.baseline, decay_rate=behavior_decay_rate)
        self.evidence_weighting = evidence_weighting
        self.recommender = RecommendationEngine(
            self.model,
            aggregator=self.aggregator,
            min_benefit_minutes=min_benefit_minutes,
            fallback_benefit_minutes=fallback_benefit_minutes,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> LongevityEngine:
        settings = settings or get_settings()
        if settings.dose_response_table_path:
            table = load_validated_table(settings.dose_response_table_path)
        else:
            table = default_table()
        return cls(
            table,
            default_life_expectancy_years=settings.default_life_expectancy_years,
            min_benefit_minutes=settings.min_benefit_minutes,
            fallback_benefit_minutes=settings.fallback_benefit_minutes,
            impact_cache_size=settings.impact_cache_size,
            apply_interactions=settings.apply_interactions,
            behavior_decay_rate=settings.behavior_decay_rate,
            evidence_weighting=settings.evidence_weighting,
        )

    # -- Public operations ---------------------------------------------------

    def calculate_impact(self, metric: HealthMetric) -> ImpactValue:
        return self.model.impact_of(metric)

    def aggregate_impact(
        self,
        metrics: Iterable[HealthMetric],
        period: TimePeriod,
        *,
        apply_interactions: bool | None = None,
    ) -> LifeImpactData:
        return self.aggregator.aggregate(metrics, period, apply_interactions=apply_interactions)

    def project_lifespan(
        self,
        profile: UserProfile,
        daily_total_minutes: float,
        completeness: DataCompleteness | None = None,
        as_of: date | None = None,
        evidence_quality: float | None = None,
    ) -> LifeProjection:
        return self.projector.project(profile, daily_total_minutes, completeness, as_of, evidence_quality)

    def recommend(self, metrics: Iterable[HealthMetric], period: TimePeriod) -> Recommendation | None:
        return self.recommender.recommend(metrics, period)

    # -- Helpers -------------------------------------------------------------

    def daily_total(self, metrics: Iterable[HealthMetric], *, apply_interactions: bool | None = None) -> float:
        return self.aggregator.daily_total(metrics, apply_interactions=apply_interactions)

    def evidence_quality(self, metrics: Iterable[HealthMetric]) -> float | None:
        """Mean evidence reliability of the tracked metric types (None when nothing is tracked)."""
        scores = [
            profile.reliability
            for profile in (self.table.get(t) for t in group_readings(metrics))
            if profile is not None
        ]
        if not scores:
            return None
        return math.fsum(scores) / len(scores)

    def active_interactions(self, metrics: Iterable[HealthMetric]) -> list[InteractionEffect]:
        """Interactions that fire for these readings (whether or not they are applied)."""
        values = {
            t: self.aggregator.representative_value(t, readings)
            for t, readings in group_readings(metrics).items()
        }
        return detect_interactions(values)


# ---------------------------------------------------------------------------
# Module-level API
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def default_engine() -> LongevityEngine:
    """Process-wide engine built from the current settings."""
    return LongevityEngine.from_settings()


def calculate_impact(metric: HealthMetric) -> ImpactValue:
    return default_engine().calculate_impact(metric)


def aggregate_impact(metrics: Iterable[HealthMetric], period: TimePeriod) -> LifeImpactData:
    return default_engine().aggregate_impact(metrics, period)


def project_lifespan(
    profile: UserProfile,
    daily_total_minutes: float,
    completeness: DataCompleteness | None = None,
) -> LifeProjection:
    return default_engine().project_lifespan(profile, daily_total_minutes, completeness)


def recommend(metrics: Iterable[HealthMetric], period: TimePeriod) -> Recommendation | None:
    return default_engine().recommend(metrics, period)
