"""Tests for the LongevityEngine facade and module-level API."""

from __future__ import annotations

from datetime import date

import pytest
import yaml

from conftest import make_metric
from lifespan.core.config.settings import Settings
from lifespan.domains.longevity.domain_logic import engine as engine_module
from lifespan.domains.longevity.domain_logic.engine import CachedImpactModel, LongevityEngine
from lifespan.domains.longevity.domain_logic.models import (
    DataCompleteness,
    ImpactDirection,
    MetricType,
    TimePeriod,
)
from lifespan.domains.longevity.tables.loader import DEFAULT_TABLE_PATH, DoseResponseTableError

AS_OF = date(2026, 1, 15)


class TestOperations:
    def test_calculate_impact(self, engine):
        impact = engine.calculate_impact(make_metric(MetricType.STEPS, 4000))
        assert impact.direction == ImpactDirection.NEGATIVE

    def test_full_pipeline(self, engine, male_profile, sample_metrics):
        summary = engine.aggregate_impact(sample_metrics, TimePeriod.DAY)
        projection = engine.project_lifespan(
            male_profile,
            summary.total_impact.lifespan_impact_minutes,
            DataCompleteness(tracked_metric_types=5, history_days=10),
            as_of=AS_OF,
        )
        # Every tracked metric in the sample is at or below neutral
        assert projection.net_impact_years < 0
        assert engine.recommend(sample_metrics, TimePeriod.DAY) is not None

    def test_determinism(self, engine, male_profile, sample_metrics):
        runs = [
            (
                engine.aggregate_impact(sample_metrics, TimePeriod.YEAR),
                engine.project_lifespan(male_profile, engine.daily_total(sample_metrics), as_of=AS_OF),
                engine.recommend(sample_metrics, TimePeriod.YEAR),
            )
            for _ in range(3)
        ]
        assert runs[0] == runs[1] == runs[2]

    def test_recommend_agrees_with_aggregate(self, engine):
        readings = [
            make_metric(MetricType.RESTING_HEART_RATE, 95, days_ago=2),
            make_metric(MetricType.RESTING_HEART_RATE, 95, days_ago=1),
            make_metric(MetricType.RESTING_HEART_RATE, 62, days_ago=0),
            make_metric(MetricType.SLEEP_HOURS, 8),
        ]
        for period in TimePeriod:
            summary = engine.aggregate_impact(readings, period)
            assert engine.recommend(readings, period).metric_type == summary.top_negative

    def test_evidence_quality_is_mean_reliability(self, engine):
        readings = [
            make_metric(MetricType.SMOKING_STATUS, 3),           # strong
            make_metric(MetricType.HEART_RATE_VARIABILITY, 40),  # limited
        ]
        assert engine.evidence_quality(readings) == pytest.approx((0.9 + 0.6) / 2)
        assert engine.evidence_quality([]) is None

    def test_active_interactions(self, engine):
        readings = [
            make_metric(MetricType.SLEEP_HOURS, 7.5),
            make_metric(MetricType.EXERCISE_MINUTES, 30),
        ]
        assert [e.title for e in engine.active_interactions(readings)] == ["Sleep-Exercise Synergy"]


class TestMemoization:
    def test_cache_enabled_by_default(self, table):
        engine = LongevityEngine(table)
        assert isinstance(engine.model, CachedImpactModel)
        metric = make_metric(MetricType.STEPS, 4000)
        engine.calculate_impact(metric)
        engine.calculate_impact(metric)
        assert engine.model.cache_info().hits >= 1

    def test_cache_disabled_with_zero(self, table):
        engine = LongevityEngine(table, impact_cache_size=0)
        assert not isinstance(engine.model, CachedImpactModel)

    def test_cached_and_uncached_agree(self, table, sample_metrics):
        cached = LongevityEngine(table)
        plain = LongevityEngine(table, impact_cache_size=0)
        for period in TimePeriod:
            assert cached.aggregate_impact(sample_metrics, period) == plain.aggregate_impact(sample_metrics, period)

    def test_bool_value_is_not_served_from_cache(self, table):
        engine = LongevityEngine(table)
        engine.calculate_impact(make_metric(MetricType.SMOKING_STATUS, 1))
        impact = engine.calculate_impact(make_metric(MetricType.SMOKING_STATUS, True))
        assert impact.direction == ImpactDirection.NEUTRAL


class TestFromSettings:
    def test_defaults(self):
        engine = LongevityEngine.from_settings(Settings())
        assert len(engine.table) == len(MetricType)
        assert engine.aggregator.apply_interactions is False
        assert engine.recommender.min_benefit_minutes == 1.0

    def test_custom_values(self):
        settings = Settings(
            default_life_expectancy_years=80.0,
            min_benefit_minutes=2.0,
            apply_interactions=True,
            impact_cache_size=0,
        )
        engine = LongevityEngine.from_settings(settings)
        assert engine.baseline.default_years == 80.0
        assert engine.recommender.min_benefit_minutes == 2.0
        assert engine.aggregator.apply_interactions is True

    def test_conservative_projection_settings(self):
        engine = LongevityEngine.from_settings(Settings(behavior_decay_rate=0.02, evidence_weighting=True))
        assert engine.projector.decay_rate == 0.02
        assert engine.evidence_weighting is True

    def test_custom_table_path(self, tmp_path):
        with open(DEFAULT_TABLE_PATH, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        data["version"] = "2.0.0"
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        engine = LongevityEngine.from_settings(Settings(dose_response_table_path=str(path)))
        assert engine.table.metadata.version == "2.0.0"

    def test_bad_table_path_raises(self, tmp_path):
        with pytest.raises(DoseResponseTableError):
            LongevityEngine.from_settings(Settings(dose_response_table_path=str(tmp_path / "missing.yaml")))


class TestModuleLevelApi:
    def test_functions_delegate_to_default_engine(self, male_profile, sample_metrics):
        steps = make_metric(MetricType.STEPS, 4000)
        assert engine_module.calculate_impact(steps).direction == ImpactDirection.NEGATIVE
        summary = engine_module.aggregate_impact(sample_metrics, TimePeriod.MONTH)
        assert summary.time_period == TimePeriod.MONTH
        projection = engine_module.project_lifespan(male_profile, 0.0)
        assert projection.confidence_percentage == pytest.approx(0.4)
        assert engine_module.recommend([], TimePeriod.DAY) is None

    def test_default_engine_reads_environment(self, monkeypatch):
        monkeypatch.setenv("MIN_BENEFIT_MINUTES", "3.0")
        engine_module.default_engine.cache_clear()
        assert engine_module.default_engine().recommender.min_benefit_minutes == 3.0
