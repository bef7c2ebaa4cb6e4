"""Duration-based card families shared by request and query cards."""

from typing import Sequence

from pulse.cards.base import UNIT_MS, CardWindow, MetricCardSpec
from pulse.domain.models import RawEvent
from pulse.metrics.statistics import average, percentile_floor_offset, round_half_up

P95 = 0.95


def _durations(events: Sequence[RawEvent]):
    return [e.duration_ms for e in events]


class AverageDurationSpec(MetricCardSpec):
    unit = UNIT_MS

    def statistic(self, window: CardWindow) -> float:
        return average(window.durations)

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return round_half_up(average(_durations(events)))

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return average(_durations(events))


class PercentileDurationSpec(MetricCardSpec):
    """95th percentile by floor offset; the sparkline still plots weekly means."""

    unit = UNIT_MS

    def statistic(self, window: CardWindow) -> float:
        return percentile_floor_offset(window.durations, P95)

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return round_half_up(average(_durations(events)))

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return percentile_floor_offset(_durations(events), P95)
