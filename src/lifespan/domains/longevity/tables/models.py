"""Data models for the per-metric dose-response table."""

from __future__ import annotations

from dataclasses import dataclass, field

from lifespan.domains.longevity.domain_logic.models import MetricType, ScalingClass

# How much of a curve's projected effect survives evidence weighting.
EVIDENCE_RELIABILITY: dict[str, float] = {
    "strong": 0.9,
    "moderate": 0.75,
    "limited": 0.6,
}


@dataclass(frozen=True)
class ImpactBand:
    """Piecewise-constant segment: values up to ``upper`` map to ``minutes``."""

    upper: float
    minutes: float


@dataclass(frozen=True)
class ImprovementTier:
    """Improvement step chosen while the value is still on the worse side of ``bound``.

    A ``bound`` of None matches every remaining value.
    """

    bound: float | None
    delta: float


@dataclass(frozen=True)
class ImprovementRule:
    """How to synthesize a realistic "improved" reading for a metric.

    kinds:
        step          value moves ``delta`` in the better direction
        tiered        first matching tier's ``delta`` in the better direction
        proportional  value moves by ``fraction`` of itself in the better direction
        snap          value set to ``target`` while worse than ``threshold``
    """

    kind: str = "proportional"
    delta: float = 0.0
    fraction: float = 0.05
    tiers: tuple[ImprovementTier, ...] = ()
    threshold: float | None = None
    target: float | None = None
    ceiling: float | None = None
    floor: float | None = None


@dataclass(frozen=True)
class MetricProfile:
    """One row of the dose-response table."""

    metric_type: MetricType
    display_name: str
    unit: str
    domain_min: float
    domain_max: float
    neutral_value: float
    coefficient: float
    min_impact: float
    max_impact: float
    higher_is_better: bool
    scaling: ScalingClass
    representative: str = "latest"  # 'latest' | 'mean' (state metrics only)
    bands: tuple[ImpactBand, ...] = ()
    improvement: ImprovementRule = field(default_factory=ImprovementRule)
    action: str = ""
    evidence: str = "moderate"
    reference: str = ""

    @property
    def reliability(self) -> float:
        return EVIDENCE_RELIABILITY.get(self.evidence, EVIDENCE_RELIABILITY["limited"])

    @property
    def is_threshold(self) -> bool:
        return bool(self.bands)

    def clamp_to_domain(self, value: float) -> float:
        return max(self.domain_min, min(self.domain_max, value))

    def clamp_impact(self, minutes: float) -> float:
        return max(self.min_impact, min(self.max_impact, minutes))


@dataclass(frozen=True)
class TableMetadata:
    """Header block of a table file."""

    id: str
    version: str
    description: str = ""
    sources: tuple[str, ...] = ()
