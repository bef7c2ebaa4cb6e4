"""Headline dashboard charts over the trailing calendar fortnight.

The two charts use different series conventions and must stay that way:
the average chart is sparse (days without requests are absent) while the
P95 chart is dense (every day of the window is present, 0 when empty).
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from pulse.cards.builder import utc_now
from pulse.core.config import settings
from pulse.core.errors import DataUnavailable
from pulse.core.logger import get_logger
from pulse.core.metrics import CARD_DEGRADED
from pulse.domain.models import EventSource, RawEvent
from pulse.infrastructure.base import EventStore
from pulse.metrics.bucketing import enumerate_days, local_date, short_label, start_of_day
from pulse.metrics.statistics import average, percentile_ceil_offset, round_half_up

logger = get_logger("charts.dashboard")

ChartData = Dict[str, int]


class ChartResult(NamedTuple):
    data: ChartData
    degraded: bool = False


def chart_days(now: datetime, days: int | None = None) -> List[date]:
    """Calendar dates from d(now - days) through today, in the zone of ``now``."""
    days = settings.chart_window_days if days is None else days
    first = start_of_day(now - timedelta(days=days)).date()
    return enumerate_days(first, now.date())


def _by_day(events: Sequence[RawEvent], now: datetime) -> Dict[date, List[float]]:
    grouped: Dict[date, List[float]] = defaultdict(list)
    for event in events:
        grouped[local_date(event.occurred_at, now.tzinfo)].append(event.duration_ms)
    return grouped


class DashboardChart:
    chart_id: str
    source = EventSource.REQUESTS

    def series(self, days: List[date], durations_by_day: Dict[date, List[float]]) -> ChartData:
        raise NotImplementedError

    def degraded(self, days: List[date]) -> ChartData:
        raise NotImplementedError

    def build(self, events: EventStore, now: datetime) -> ChartResult:
        days = chart_days(now)
        start = start_of_day(now - timedelta(days=settings.chart_window_days))
        try:
            window = events.events_for(self.source, None, start, now)
        except DataUnavailable:
            CARD_DEGRADED.labels(builder=self.chart_id).inc()
            logger.warning("chart_degraded", exc_info=True, extra={"chart_id": self.chart_id})
            return ChartResult(self.degraded(days), degraded=True)
        return ChartResult(self.series(days, _by_day(window, now)))


class AverageResponseTimeChart(DashboardChart):
    """Sparse: only days with at least one request get a point."""

    chart_id = "dashboard_average_response_time"

    def series(self, days, durations_by_day):
        return {
            short_label(day): round_half_up(average(durations_by_day[day]))
            for day in days
            if durations_by_day.get(day)
        }

    def degraded(self, days):
        return {}


class P95ResponseTimeChart(DashboardChart):
    """Dense: every day of the window, nearest-rank p95, 0 for quiet days."""

    chart_id = "dashboard_p95_response_time"

    def series(self, days, durations_by_day):
        return {
            short_label(day): round_half_up(percentile_ceil_offset(durations_by_day.get(day, []), 0.95))
            for day in days
        }

    def degraded(self, days):
        return {short_label(day): 0 for day in days}


CHARTS: Dict[str, DashboardChart] = {
    chart.chart_id: chart for chart in (AverageResponseTimeChart(), P95ResponseTimeChart())
}


class DashboardChartBuilder:
    def __init__(self, events: EventStore, clock: Callable[[], datetime] = utc_now):
        self.events = events
        self.clock = clock

    def build(self, chart_id: str, now: Optional[datetime] = None) -> Optional[ChartData]:
        """Chart data for ``chart_id``; None when no such chart exists."""
        result = self.build_result(chart_id, now)
        return None if result is None else result.data

    def build_result(self, chart_id: str, now: Optional[datetime] = None) -> Optional[ChartResult]:
        chart = CHARTS.get(chart_id)
        if chart is None:
            logger.info("chart_unknown", extra={"chart_id": chart_id})
            return None
        return chart.build(self.events, now or self.clock())
