"""Longevity domain models and constants shared by every engine component."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

DAYS_PER_YEAR = 365.25
MINUTES_PER_DAY = 24 * 60
MINUTES_PER_YEAR = DAYS_PER_YEAR * MINUTES_PER_DAY

# Population-average life expectancy used when age or gender is unknown.
DEFAULT_LIFE_EXPECTANCY_YEARS = 78.0

# Impacts closer to zero than this are reported as neutral.
NEUTRAL_EPSILON = 1e-9


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MetricType(str, Enum):
    """Closed set of tracked health metrics (declaration order = table order)."""

    STEPS = "steps"
    EXERCISE_MINUTES = "exercise_minutes"
    SLEEP_HOURS = "sleep_hours"
    RESTING_HEART_RATE = "resting_heart_rate"
    HEART_RATE_VARIABILITY = "heart_rate_variability"
    BODY_MASS = "body_mass"
    NUTRITION_QUALITY = "nutrition_quality"
    SMOKING_STATUS = "smoking_status"
    ALCOHOL_CONSUMPTION = "alcohol_consumption"
    SOCIAL_CONNECTIONS_QUALITY = "social_connections_quality"
    STRESS_LEVEL = "stress_level"
    ACTIVE_ENERGY_BURNED = "active_energy_burned"
    VO2_MAX = "vo2_max"
    OXYGEN_SATURATION = "oxygen_saturation"
    BLOOD_PRESSURE = "blood_pressure"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


# Canonical position of each type, used for deterministic tie-breaks.
METRIC_ORDER: dict[MetricType, int] = {t: i for i, t in enumerate(MetricType)}


class MetricSource(str, Enum):
    HEALTHKIT = "healthkit"
    USER_INPUT = "user_input"


class ImpactDirection(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class TimePeriod(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"

    @property
    def days(self) -> int:
        """Number of days a sustained daily habit covers in this period."""
        return _PERIOD_DAYS[self]


_PERIOD_DAYS = {
    TimePeriod.DAY: 1,
    TimePeriod.MONTH: 30,
    TimePeriod.YEAR: 365,
}


class ScalingClass(str, Enum):
    """How a metric's daily impact extends to a longer period.

    RATE metrics compound per day and scale by day count. STATE metrics
    describe a condition and are re-evaluated at the period's
    representative value instead.
    """

    RATE = "rate"
    STATE = "state"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HealthMetric:
    """A single reading supplied by a sensor or manual-entry collaborator."""

    id: str
    type: MetricType
    value: float
    date: date  # datetime, or a plain date read as midnight UTC
    source: MetricSource = MetricSource.HEALTHKIT

    def with_value(self, value: float) -> HealthMetric:
        """Return a copy of this reading carrying a different value."""
        return HealthMetric(
            id=f"{self.id}:simulated",
            type=self.type,
            value=value,
            date=self.date,
            source=self.source,
        )

    def sort_key(self) -> tuple:
        """Canonical ordering: type, then date, then id, then value."""
        return (METRIC_ORDER.get(self.type, len(METRIC_ORDER)), as_utc(self.date), self.id, self.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "value": self.value,
            "date": self.date.isoformat(),
            "source": self.source.value,
        }


@dataclass(frozen=True)
class ImpactValue:
    """Daily (or period-scoped) lifespan impact in minutes."""

    lifespan_impact_minutes: float
    direction: ImpactDirection

    @classmethod
    def from_minutes(cls, minutes: float) -> ImpactValue:
        if minutes > NEUTRAL_EPSILON:
            direction = ImpactDirection.POSITIVE
        elif minutes < -NEUTRAL_EPSILON:
            direction = ImpactDirection.NEGATIVE
        else:
            direction = ImpactDirection.NEUTRAL
            minutes = 0.0
        return cls(lifespan_impact_minutes=minutes, direction=direction)

    @classmethod
    def neutral(cls) -> ImpactValue:
        return cls(lifespan_impact_minutes=0.0, direction=ImpactDirection.NEUTRAL)

    def to_dict(self) -> dict[str, Any]:
        return {
            "lifespan_impact_minutes": round(self.lifespan_impact_minutes, 4),
            "direction": self.direction.value,
        }


@dataclass(frozen=True)
class UserProfile:
    """Caller-owned profile snapshot. The engine never mutates it."""

    birth_year: int | None = None
    gender: Gender | None = None
    height: float | None = None  # cm
    weight: float | None = None  # kg

    def age(self, as_of: date | None = None) -> int | None:
        """Age in whole years at ``as_of`` (defaults to today, UTC)."""
        if self.birth_year is None:
            return None
        year = (as_of or datetime.now(timezone.utc).date()).year
        return max(0, year - self.birth_year)

    @property
    def has_required_profile_data(self) -> bool:
        return self.birth_year is not None and self.gender is not None


@dataclass(frozen=True)
class DataCompleteness:
    """How much corroborating data stands behind a projection."""

    tracked_metric_types: int = 0
    history_days: int = 0


@dataclass(frozen=True)
class LifeProjection:
    """Adjusted life expectancy against a demographic baseline."""

    baseline_life_expectancy_years: float
    adjusted_life_expectancy_years: float
    current_age: float
    confidence_percentage: float
    confidence_interval_years: float
    calculation_date: date

    @property
    def net_impact_years(self) -> float:
        return self.adjusted_life_expectancy_years - self.baseline_life_expectancy_years

    @property
    def net_impact_days(self) -> float:
        return self.net_impact_years * DAYS_PER_YEAR

    @property
    def lower_bound_years(self) -> float:
        return max(0.0, self.adjusted_life_expectancy_years - self.confidence_interval_years / 2.0)

    @property
    def upper_bound_years(self) -> float:
        return self.adjusted_life_expectancy_years + self.confidence_interval_years / 2.0

    @property
    def remaining_years(self) -> float:
        """Projected years left. Negative means near-term depletion."""
        return self.adjusted_life_expectancy_years - self.current_age

    @property
    def percentage_change(self) -> float:
        if self.baseline_life_expectancy_years <= 0:
            return 0.0
        return (self.adjusted_life_expectancy_years / self.baseline_life_expectancy_years - 1.0) * 100.0

    @property
    def interpretation(self) -> str:
        net = self.net_impact_years
        if net > 5.0:
            return "Significantly extending life expectancy"
        if net > 2.0:
            return "Moderately extending life expectancy"
        if net > 0.5:
            return "Slightly extending life expectancy"
        if net > -0.5:
            return "Maintaining baseline life expectancy"
        if net > -2.0:
            return "Slightly reducing life expectancy"
        if net > -5.0:
            return "Moderately reducing life expectancy"
        return "Significantly reducing life expectancy"

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline_life_expectancy_years": round(self.baseline_life_expectancy_years, 3),
            "adjusted_life_expectancy_years": round(self.adjusted_life_expectancy_years, 3),
            "current_age": self.current_age,
            "net_impact_years": round(self.net_impact_years, 3),
            "confidence_percentage": round(self.confidence_percentage, 4),
            "confidence_interval_years": round(self.confidence_interval_years, 3),
            "interpretation": self.interpretation,
            "calculation_date": self.calculation_date.isoformat(),
        }


@dataclass(frozen=True)
class LifeImpactData:
    """Period-scoped impact summary. Created fresh per query."""

    time_period: TimePeriod
    total_impact: ImpactValue
    metric_contributions: dict[MetricType, ImpactValue] = field(default_factory=dict)

    @classmethod
    def empty(cls, period: TimePeriod) -> LifeImpactData:
        return cls(time_period=period, total_impact=ImpactValue.neutral(), metric_contributions={})

    @property
    def top_positive(self) -> MetricType | None:
        """Largest gain among the contributions (first in table order on ties)."""
        positives = [(t, v) for t, v in self._ordered() if v.direction == ImpactDirection.POSITIVE]
        if not positives:
            return None
        return max(positives, key=lambda item: item[1].lifespan_impact_minutes)[0]

    @property
    def top_negative(self) -> MetricType | None:
        """Largest loss among the contributions (first in table order on ties)."""
        negatives = [(t, v) for t, v in self._ordered() if v.direction == ImpactDirection.NEGATIVE]
        if not negatives:
            return None
        return min(negatives, key=lambda item: item[1].lifespan_impact_minutes)[0]

    def _ordered(self) -> list[tuple[MetricType, ImpactValue]]:
        return sorted(self.metric_contributions.items(), key=lambda item: METRIC_ORDER[item[0]])

    def to_dict(self) -> dict[str, Any]:
        return {
            "time_period": self.time_period.value,
            "total_impact": self.total_impact.to_dict(),
            "metric_contributions": {
                t.value: v.to_dict() for t, v in self.metric_contributions.items()
            },
            "top_positive_metric": self.top_positive.value if self.top_positive else None,
            "top_negative_metric": self.top_negative.value if self.top_negative else None,
        }


@dataclass(frozen=True)
class Recommendation:
    """The single behavior change worth acting on, with its quoted benefit."""

    metric: HealthMetric
    action_text: str
    benefit_minutes: float
    period: TimePeriod

    @property
    def metric_type(self) -> MetricType:
        return self.metric.type

    def to_dict(self) -> dict[str, Any]:
        return {
            "metric_type": self.metric_type.value,
            "action_text": self.action_text,
            "benefit_minutes": round(self.benefit_minutes, 4),
            "period": self.period.value,
        }


def is_finite_number(value: Any) -> bool:
    """True for real, finite numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def as_utc(moment: date) -> datetime:
    """Comparable UTC instant for a reading date.

    Plain dates are midnight UTC and naive datetimes are taken as UTC.
    """
    if not isinstance(moment, datetime):
        return datetime.combine(moment, time.min, tzinfo=timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
