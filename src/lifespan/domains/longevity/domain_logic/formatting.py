"""Human-readable text for impacts, benefits and projection confidence."""

from __future__ import annotations

MINUTES_IN_HOUR = 60.0
MINUTES_IN_DAY = 1440.0
MINUTES_IN_WEEK = 10080.0
MINUTES_IN_MONTH = 43200.0   # 30 days
MINUTES_IN_YEAR = 525600.0   # 365 days

# Largest unit first; used by describe_impact.
_UNITS = (
    (MINUTES_IN_YEAR, "year"),
    (MINUTES_IN_MONTH, "month"),
    (MINUTES_IN_WEEK, "week"),
    (MINUTES_IN_DAY, "day"),
    (MINUTES_IN_HOUR, "hour"),
)


def _plural(unit: str, amount: float) -> str:
    return unit if amount == 1.0 else unit + "s"


def format_benefit(minutes: float) -> str:
    """Short benefit text: '+12 min', '+1.5 hours', '+3.2 days'.

    Always positive; anything under a minute reads as '+1 min'.
    """
    magnitude = abs(minutes)
    if magnitude >= MINUTES_IN_DAY:
        days = magnitude / MINUTES_IN_DAY
        return f"+{days:.1f} {_plural('day', days)}"
    if magnitude >= MINUTES_IN_HOUR:
        hours = magnitude / MINUTES_IN_HOUR
        return f"+{hours:.1f} {_plural('hour', hours)}"
    return f"+{max(1, int(magnitude))} min"


def format_period_impact(minutes: float) -> str:
    """Signed compact text for a period total: '-12 min', '+2.5 hrs', '+1.3 days'."""
    sign = "+" if minutes >= 0 else "-"
    magnitude = abs(minutes)
    if magnitude < MINUTES_IN_HOUR:
        return f"{sign}{int(magnitude)} min"
    hours = magnitude / MINUTES_IN_HOUR
    if hours < 24:
        return f"{sign}{hours:.1f} hrs"
    return f"{sign}{hours / 24:.1f} days"


def describe_impact(minutes: float) -> str:
    """Sentence-style impact, e.g. '3 hours gained' or '1.5 days lost'."""
    direction = "gained" if minutes >= 0 else "lost"
    magnitude = abs(minutes)
    for size, unit in _UNITS:
        if magnitude >= size:
            amount = magnitude / size
            if amount >= 2:
                return f"{amount:.0f} {unit}s {direction}"
            return f"{amount:.1f} {unit} {direction}"
    whole = int(magnitude)
    return f"{whole} {_plural('minute', whole)} {direction}"


def confidence_description(confidence: float) -> str:
    if confidence >= 0.8:
        return "High confidence based on comprehensive data"
    if confidence >= 0.6:
        return "Moderate confidence with good data coverage"
    if confidence >= 0.4:
        return "Limited confidence due to partial data"
    return "Low confidence - more data needed"
