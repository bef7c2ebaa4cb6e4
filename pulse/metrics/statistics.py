"""Pure statistics over a window of raw events.

Every function here is a pure function of its arguments. Empty input never
raises; it yields the neutral value documented on each function.

Two percentile conventions live side by side and are deliberately not
merged: ``percentile_floor_offset`` backs the percentile metric cards and
``percentile_ceil_offset`` backs the dashboard P95 chart.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 86400


def average(durations: Sequence[float]) -> float:
    """Arithmetic mean; 0 for an empty window."""
    if not durations:
        return 0
    return sum(durations) / len(durations)


def _clamp(offset: int, n: int) -> int:
    return max(0, min(offset, n - 1))


def percentile_floor_offset(durations: Sequence[float], p: float) -> float:
    """Element at ``floor(n * p)`` of the ascending sort (ORDER BY .. OFFSET).

    >>> percentile_floor_offset(range(10, 101, 10), 0.95)
    100
    """
    if not durations:
        return 0
    ordered = sorted(durations)
    n = len(ordered)
    return ordered[_clamp(math.floor(n * p), n)]


def percentile_ceil_offset(durations: Sequence[float], p: float) -> float:
    """Element at ``ceil(n * p) - 1`` of the ascending sort (nearest rank).

    >>> percentile_ceil_offset([10, 20, 30, 40, 50], 0.95)
    50
    """
    if not durations:
        return 0
    ordered = sorted(durations)
    n = len(ordered)
    return ordered[_clamp(math.ceil(n * p) - 1, n)]


def rate_per_minute(timestamps: Sequence[datetime]) -> float:
    """Events per minute across the observed span.

    A single event (or a zero-width span) counts as one minute of traffic.
    """
    count = len(timestamps)
    if count <= 1:
        return round(float(count), 2)
    earliest, latest = min(timestamps), max(timestamps)
    if earliest == latest:
        return round(float(count), 2)
    minutes = (latest - earliest).total_seconds() / SECONDS_PER_MINUTE
    return round(count / minutes, 2)


def error_rate_percentage(total: int, errors: int) -> float:
    if total == 0:
        return 0
    return round(errors / total * 100, 2)


def interpolated_percentile(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """Linear interpolation between closest ranks; rollup columns only."""
    if not sorted_values:
        return None
    position = p * (len(sorted_values) - 1)
    k = math.floor(position)
    fraction = position - k
    if fraction == 0 or k + 1 >= len(sorted_values):
        return sorted_values[k]
    return sorted_values[k] + (sorted_values[k + 1] - sorted_values[k]) * fraction


def sample_stddev(values: Sequence[float], mean: float) -> Optional[float]:
    if len(values) < 2:
        return None
    squares = sum((v - mean) ** 2 for v in values)
    return math.sqrt(squares / (len(values) - 1))


def span_in_days(timestamps: Sequence[datetime]) -> float:
    """Observed span in days; 1 for fewer than two distinct timestamps."""
    if len(timestamps) <= 1:
        return 1
    earliest, latest = min(timestamps), max(timestamps)
    if earliest == latest:
        return 1
    return (latest - earliest).total_seconds() / SECONDS_PER_DAY


def round_half_up(value: float) -> int:
    """Integer display rounding (2.5 -> 3), unlike round()'s banker's rule."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
