"""Cards for the queries context (``queries`` or ``query_<id>``)."""

from typing import Sequence

from pulse.cards.base import UNIT_PER_MINUTE, CardWindow, MetricCardSpec
from pulse.cards.durations import AverageDurationSpec, PercentileDurationSpec
from pulse.core.config import settings
from pulse.domain.models import EventSource, RawEvent

MINUTES_PER_DAY = 24 * 60


class AverageQueryTimes(AverageDurationSpec):
    metric_id = "average_query_times"
    title = "Average Query Time"
    source = EventSource.OPERATIONS


class PercentileQueryTimes(PercentileDurationSpec):
    metric_id = "percentile_query_times"
    title = "95th Percentile Query Time"
    source = EventSource.OPERATIONS


class ExecutionRate(MetricCardSpec):
    """Executions per minute averaged over the whole card window."""

    metric_id = "execution_rate"
    title = "Execution Rate"
    unit = UNIT_PER_MINUTE
    source = EventSource.OPERATIONS

    def statistic(self, window: CardWindow) -> float:
        window_minutes = settings.card_window_days * MINUTES_PER_DAY
        return round(len(window.events) / window_minutes, 2)

    def format_statistic(self, value: float) -> str:
        return f"{value}{self.unit}"

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return len(events)

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return len(events)
