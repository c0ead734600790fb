# lesson_reports/services/time_utils.py
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

# Lower tardiness bound: nobody counts as more than one hour early.
MIN_TARDINESS_SECONDS = -3600

_FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^\s*[+-]?\d+")


def parse_timestamp(value: str | None) -> Optional[datetime]:
    """
    Parse an extract timestamp ("YYYY-MM-DD HH:MM:SS", "T" also accepted).

    Returns None if the value is empty or cannot be parsed. Offset-aware
    values are converted to naive UTC so every parsed value is comparable.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace(" ", "T").replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def timestamp_diff(earlier: str | None, later: str | None) -> int:
    """
    Whole seconds from `earlier` to `later` (later - earlier).

    A missing or unparseable endpoint degrades the difference to 0.
    """
    start = parse_timestamp(earlier)
    end = parse_timestamp(later)
    if start is None or end is None:
        return 0
    return round_half_up((end - start).total_seconds())


def interval_hours(event: str | None, scheduled_start: str | None) -> Optional[float]:
    """
    Hours between an event (cancellation, enrollment) and the scheduled start.

    None when the event timestamp is absent; the value is rounded to 2 places.
    """
    if not event or not event.strip():
        return None
    return round2(timestamp_diff(event, scheduled_start) / 3600)


def clamp_tardiness(raw_seconds: int, scheduled_duration: int) -> int:
    if raw_seconds < MIN_TARDINESS_SECONDS:
        return MIN_TARDINESS_SECONDS
    if raw_seconds > scheduled_duration:
        return scheduled_duration
    return raw_seconds


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded towards +infinity."""
    return int(math.floor(value + 0.5))


def round2(value: float) -> float:
    """
    Round to two decimals the way the reports always have: exact decimal
    value, halves rounded away from zero (-0.125 -> -0.13).
    """
    rounded = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(rounded) or 0.0


def parse_bool(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def parse_int_prefix(value: str | None) -> Optional[int]:
    """Leading integer of a text cell ("12", "12 seats", "3.0"), else None."""
    match = _INT_PREFIX_RE.match(value or "")
    if match is None:
        return None
    return int(match.group(0))


def parse_float_prefix(value: str | None) -> Optional[float]:
    """Leading decimal number of a text cell ("4", "4.5/5"), else None."""
    match = _FLOAT_PREFIX_RE.match(value or "")
    if match is None:
        return None
    return float(match.group(0))


def mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def mean_gap_hours(starts: list[datetime]) -> Optional[float]:
    """
    Mean gap in hours between consecutive starts after sorting them.

    None unless there are at least two starts.
    """
    if len(starts) < 2:
        return None
    ordered = sorted(starts)
    total = sum(
        (later - earlier).total_seconds() / 3600
        for earlier, later in zip(ordered, ordered[1:])
    )
    return total / (len(ordered) - 1)


def format_hh_mm(seconds: int) -> str:
    sign = "-" if seconds < 0 else ""
    minutes = abs(seconds) // 60
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"
