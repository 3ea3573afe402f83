"""Duration and percentage formatting helpers.

Durations are stored as integer seconds and shown as compound strings such as
``"2h 30m 15s"``. Percentages (intensity, severity, efficacy) are clamped into
[0, 100] rather than rejected.
"""

import math
import re

from ailment_tracker.constants import (
    BAND_HIGH,
    BAND_LOW,
    EFFICACY_COLORS,
    INTENSITY_COLORS,
    PERCENT_MAX,
    PERCENT_MIN,
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    SEVERITY_COLORS,
)

_BARE_SECONDS = re.compile(r"^\d+$")
_DURATION_UNITS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"(\d+)\s*d", re.IGNORECASE), SECONDS_PER_DAY),
    (re.compile(r"(\d+)\s*h", re.IGNORECASE), SECONDS_PER_HOUR),
    # "m" not followed by "s", so "ms" is never read as minutes
    (re.compile(r"(\d+)\s*m(?!s)", re.IGNORECASE), SECONDS_PER_MINUTE),
    (re.compile(r"(\d+)\s*s", re.IGNORECASE), 1),
)


def format_duration(seconds: int | float | None) -> str:
    """Render seconds as ``"1d 2h 3m 4s"``, skipping zero components.

    Returns ``"0s"`` for zero, negative or missing values. Sub-second
    precision is dropped.
    """
    if not seconds or seconds < 0:
        return "0s"

    total = int(seconds)
    days, rest = divmod(total, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, secs = divmod(rest, SECONDS_PER_MINUTE)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def parse_duration(duration: str | None) -> int:
    """Parse ``"2h 30m"``-style strings into seconds.

    A bare integer string is taken as seconds. Only the first occurrence of
    each unit is counted; unmatched text is ignored. Empty input gives 0.
    """
    if not duration:
        return 0

    text = duration.strip()
    if _BARE_SECONDS.match(text):
        return int(text)

    total = 0
    for pattern, unit_seconds in _DURATION_UNITS:
        match = pattern.search(text)
        if match:
            total += int(match.group(1)) * unit_seconds
    return total


def clamp_percent(value: float) -> float:
    """Clamp a number into [0, 100]."""
    return max(PERCENT_MIN, min(PERCENT_MAX, value))


def coerce_percent(value: object) -> int:
    """Convert loosely typed input (int, float, numeric str) to a clamped int.

    Raises ValueError for input that is not a finite number, including bools.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a percentage: {value!r}")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValueError(f"Not a percentage: {value!r}")
    if math.isnan(number):
        raise ValueError(f"Not a percentage: {value!r}")
    return int(round(clamp_percent(number)))


def coerce_duration(value: object) -> int:
    """Convert seconds or a compound duration string into non-negative seconds."""
    if value is None:
        return 0
    if isinstance(value, str):
        return parse_duration(value)
    if isinstance(value, bool):
        raise ValueError(f"Not a duration: {value!r}")
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ValueError(f"Not a duration: {value!r}")
    if math.isnan(seconds):
        raise ValueError(f"Not a duration: {value!r}")
    return max(0, int(seconds))


def format_percentage(value: float | None) -> str:
    if value is None:
        return "0%"
    return f"{round(value)}%"


def _band(value: float, colors: tuple[str, str, str]) -> str:
    clamped = clamp_percent(value)
    if clamped < BAND_LOW:
        return colors[0]
    if clamped < BAND_HIGH:
        return colors[1]
    return colors[2]


def severity_color(severity: float) -> str:
    """Green for low, yellow for medium, red for high severity."""
    return _band(severity, SEVERITY_COLORS)


def intensity_color(intensity: float) -> str:
    """Light to dark blue as intensity rises."""
    return _band(intensity, INTENSITY_COLORS)


def efficacy_color(efficacy: float) -> str:
    """Red for low, yellow for medium, green for high efficacy."""
    return _band(efficacy, EFFICACY_COLORS)
