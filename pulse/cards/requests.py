from typing import Sequence

from pulse.cards.base import UNIT_PERCENT, CardWindow, MetricCardSpec
from pulse.domain.models import EventSource, RawEvent
from pulse.metrics.statistics import error_rate_percentage


def _error_rate(events: Sequence[RawEvent]) -> float:
    return error_rate_percentage(len(events), sum(1 for e in events if e.is_error))


class ErrorRate(MetricCardSpec):
    """Share of failed requests across every route."""

    metric_id = "error_rate"
    title = "Error Rate"
    unit = UNIT_PERCENT
    source = EventSource.REQUESTS

    def statistic(self, window: CardWindow) -> float:
        return _error_rate(window.events)

    def format_statistic(self, value: float) -> str:
        return f"{value}{self.unit}"

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return _error_rate(events)

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return _error_rate(events)
