"""Dose-response table: in-memory index of metric profiles."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from lifespan.domains.longevity.domain_logic.models import METRIC_ORDER, MetricType, ScalingClass
from lifespan.domains.longevity.tables.models import MetricProfile, TableMetadata

logger = logging.getLogger(__name__)


class DoseResponseTable:
    """Read-only lookup of ``MetricProfile`` rows keyed by metric type.

    Every engine component consumes the same table instance, so revising a
    coefficient, cap, or classification happens in one place.
    """

    def __init__(self, metadata: TableMetadata | None = None) -> None:
        self.metadata = metadata or TableMetadata(id="dose_response", version="0")
        self._profiles: dict[MetricType, MetricProfile] = {}

    def register(self, profile: MetricProfile) -> None:
        """Add a profile; each metric type may appear once."""
        if profile.metric_type in self._profiles:
            raise ValueError(f"Duplicate metric profile registered: {profile.metric_type.value!r}")
        self._profiles[profile.metric_type] = profile

    def get(self, metric_type: MetricType) -> MetricProfile | None:
        return self._profiles.get(metric_type)

    def __contains__(self, metric_type: object) -> bool:
        return metric_type in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[MetricProfile]:
        return iter(self.all())

    def all(self) -> list[MetricProfile]:
        """All profiles in canonical metric order."""
        return sorted(self._profiles.values(), key=lambda p: METRIC_ORDER[p.metric_type])

    def scaling_of(self, metric_type: MetricType) -> ScalingClass:
        """Rate/state classification. Unknown types are treated as state."""
        profile = self._profiles.get(metric_type)
        return profile.scaling if profile else ScalingClass.STATE

    def by_scaling(self, scaling: ScalingClass) -> list[MetricType]:
        return [p.metric_type for p in self.all() if p.scaling == scaling]
