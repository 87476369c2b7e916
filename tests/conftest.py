"""Shared test fixtures for lifespan engine tests."""

from __future__ import annotations

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from lifespan.domains.longevity.domain_logic.engine import LongevityEngine, default_engine  # noqa: E402
from lifespan.domains.longevity.domain_logic.impact_model import MetricImpactModel  # noqa: E402
from lifespan.domains.longevity.domain_logic.models import (  # noqa: E402
    Gender,
    HealthMetric,
    MetricSource,
    MetricType,
    UserProfile,
)
from lifespan.domains.longevity.tables.registry import DoseResponseTable  # noqa: E402
from lifespan.domains.longevity.tables.validator import default_table  # noqa: E402

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

_SETTINGS_ENV = [
    "LIFESPAN_HOST",
    "LIFESPAN_PORT",
    "LIFESPAN_LOG_LEVEL",
    "LIFESPAN_ALLOW_INSECURE_BIND",
    "LIFESPAN_TRANSPORT",
    "DOSE_RESPONSE_TABLE_PATH",
    "DEFAULT_LIFE_EXPECTANCY_YEARS",
    "MIN_BENEFIT_MINUTES",
    "FALLBACK_BENEFIT_MINUTES",
    "IMPACT_CACHE_SIZE",
    "APPLY_INTERACTIONS",
    "BEHAVIOR_DECAY_RATE",
    "EVIDENCE_WEIGHTING",
]


@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    default_engine.cache_clear()


# ---------------------------------------------------------------------------
# Reading helpers
# ---------------------------------------------------------------------------

AS_OF = date(2026, 1, 15)
_T0 = datetime(2026, 1, 15, 8, 0, tzinfo=timezone.utc)


def make_metric(
    metric_type: MetricType,
    value: float,
    *,
    days_ago: int = 0,
    id: str | None = None,
    source: MetricSource = MetricSource.HEALTHKIT,
) -> HealthMetric:
    """Create a reading dated relative to a fixed reference time."""
    return HealthMetric(
        id=id or f"{metric_type.value}-{days_ago}-{value}",
        type=metric_type,
        value=value,
        date=_T0 - timedelta(days=days_ago),
        source=source,
    )


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def table() -> DoseResponseTable:
    return default_table()


@pytest.fixture
def model(table: DoseResponseTable) -> MetricImpactModel:
    return MetricImpactModel(table)


@pytest.fixture
def engine(table: DoseResponseTable) -> LongevityEngine:
    return LongevityEngine(table)


@pytest.fixture
def male_profile() -> UserProfile:
    # 40 years old at AS_OF
    return UserProfile(birth_year=1986, gender=Gender.MALE, height=178.0, weight=80.0)


@pytest.fixture
def sample_metrics() -> list[HealthMetric]:
    """A week-like mix of rate and state readings."""
    return [
        make_metric(MetricType.STEPS, 4000, days_ago=2),
        make_metric(MetricType.STEPS, 6000, days_ago=1),
        make_metric(MetricType.SLEEP_HOURS, 6.5, days_ago=1),
        make_metric(MetricType.RESTING_HEART_RATE, 78, days_ago=3),
        make_metric(MetricType.RESTING_HEART_RATE, 74, days_ago=1),
        make_metric(MetricType.SMOKING_STATUS, 0, days_ago=10),
        make_metric(MetricType.EXERCISE_MINUTES, 15, days_ago=1),
    ]
