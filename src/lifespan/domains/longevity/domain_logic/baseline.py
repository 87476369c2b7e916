"""Demographic baseline life expectancy."""

from __future__ import annotations

import logging
from datetime import date

from lifespan.domains.longevity.domain_logic.models import (
    DEFAULT_LIFE_EXPECTANCY_YEARS,
    Gender,
    UserProfile,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Remaining life expectancy (years) at the start of each 10-year age band.
# WHO Global Health Observatory life tables, global averages.
# ---------------------------------------------------------------------------

MALE_REMAINING_YEARS: dict[int, float] = {
    0: 71.4, 10: 62.1, 20: 52.3, 30: 42.8, 40: 33.5,
    50: 24.7, 60: 16.8, 70: 10.1, 80: 5.5, 90: 3.0,
}

FEMALE_REMAINING_YEARS: dict[int, float] = {
    0: 76.8, 10: 67.4, 20: 57.5, 30: 47.7, 40: 38.1,
    50: 28.8, 60: 20.1, 70: 12.5, 80: 6.8, 90: 3.5,
}

UNSPECIFIED_REMAINING_YEARS: dict[int, float] = {
    age: (MALE_REMAINING_YEARS[age] + FEMALE_REMAINING_YEARS[age]) / 2.0
    for age in MALE_REMAINING_YEARS
}

_TABLES: dict[Gender, dict[int, float]] = {
    Gender.MALE: MALE_REMAINING_YEARS,
    Gender.FEMALE: FEMALE_REMAINING_YEARS,
    Gender.PREFER_NOT_TO_SAY: UNSPECIFIED_REMAINING_YEARS,
}


def remaining_years(age: float, gender: Gender) -> float:
    """Linearly interpolate remaining years between age bands.

    Ages past the last band keep the last band's value.
    """
    table = _TABLES[gender]
    ages = sorted(table)
    if age <= ages[0]:
        return table[ages[0]]
    if age >= ages[-1]:
        return table[ages[-1]]

    for lower, upper in zip(ages, ages[1:]):
        if lower <= age <= upper:
            fraction = (age - lower) / (upper - lower)
            return table[lower] + fraction * (table[upper] - table[lower])
    return table[ages[-1]]


class BaselineMortalityAdjuster:
    """Baseline (expected age at death) for a profile, before behavior adjustments."""

    def __init__(self, default_years: float = DEFAULT_LIFE_EXPECTANCY_YEARS) -> None:
        self.default_years = default_years

    def baseline_for(self, profile: UserProfile, as_of: date | None = None) -> float:
        age = profile.age(as_of)
        if age is None or profile.gender is None:
            logger.debug("Profile lacks age or gender; using population default baseline")
            return self.default_years
        return age + remaining_years(age, profile.gender)
