"""Period-over-period trend between two fixed 7-day windows."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import NamedTuple

from pulse.domain.models import Trend
from pulse.metrics.bucketing import start_of_day

FLAT_THRESHOLD_PCT = 0.1


class TrendWindows(NamedTuple):
    previous_start: datetime
    current_start: datetime
    end: datetime

    def in_previous(self, ts: datetime) -> bool:
        return self.previous_start <= ts < self.current_start

    def in_current(self, ts: datetime) -> bool:
        return self.current_start <= ts < self.end


def trend_windows(now: datetime, days: int = 7) -> TrendWindows:
    """previous = [d(now-2*days), d(now-days)), current = [d(now-days), now).

    ``d()`` is the start of day in the zone carried by ``now``. The windows
    never depend on a page-level time filter.
    """
    return TrendWindows(
        previous_start=start_of_day(now - timedelta(days=2 * days)),
        current_start=start_of_day(now - timedelta(days=days)),
        end=now,
    )


def compute_trend(current: float, previous: float, signed: bool = False) -> Trend:
    """Direction and magnitude of ``current`` relative to ``previous``.

    ``signed`` keeps the sign in ``amount_text`` ("-25.0%"); cards that show
    a bare magnitude pass False.
    """
    if previous == 0:
        return Trend(icon="flat", amount_text="0%")

    pct = (current - previous) / previous * 100
    if abs(pct) < FLAT_THRESHOLD_PCT:
        icon = "flat"
    elif pct > 0:
        icon = "up"
    else:
        icon = "down"

    amount = round(pct, 1) if signed else round(abs(pct), 1)
    return Trend(icon=icon, amount_text=f"{amount}%")
