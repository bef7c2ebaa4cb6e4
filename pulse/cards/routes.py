"""Route cards, served for ``routes``, ``route_<id>`` and the unscoped ``requests`` context."""

from collections import defaultdict
from typing import Any, Dict, List, Sequence

from pulse.cards.base import UNIT_PER_DAY, UNIT_PER_MINUTE, CardWindow, MetricCardSpec
from pulse.cards.durations import AverageDurationSpec, PercentileDurationSpec
from pulse.domain.models import EntityType, EventSource, RawEvent
from pulse.infrastructure.base import EventStore
from pulse.metrics.statistics import error_rate_percentage, rate_per_minute, span_in_days


class AverageResponseTimes(AverageDurationSpec):
    metric_id = "average_response_times"
    title = "Average Response Time"
    source = EventSource.REQUESTS


class PercentileResponseTimes(PercentileDurationSpec):
    metric_id = "percentile_response_times"
    title = "95th Percentile Response Time"
    source = EventSource.REQUESTS


class RequestCountTotals(MetricCardSpec):
    metric_id = "request_count_totals"
    title = "Request Count Total"
    unit = UNIT_PER_MINUTE
    source = EventSource.REQUESTS

    def statistic(self, window: CardWindow) -> float:
        return rate_per_minute(window.timestamps)

    def format_statistic(self, value: float) -> str:
        return f"{value}{self.unit}"

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return len(events)

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return len(events)


class ErrorRatePerRoute(MetricCardSpec):
    """Errors per day with a per-route error-rate table.

    The only card whose trend keeps its sign ("-25.0%").
    """

    metric_id = "error_rate_per_route"
    title = "Error Rate Per Route"
    unit = UNIT_PER_DAY
    source = EventSource.REQUESTS
    signed_trend = True

    def statistic(self, window: CardWindow) -> float:
        errors = sum(1 for e in window.events if e.is_error)
        return round(errors / span_in_days(window.timestamps), 2)

    def format_statistic(self, value: float) -> str:
        return f"{value}{self.unit}"

    def sparkline_events(self, window: CardWindow) -> Sequence[RawEvent]:
        return [e for e in window.events if e.is_error]

    def week_value(self, events: Sequence[RawEvent]) -> float:
        return len(events)

    def trend_value(self, events: Sequence[RawEvent]) -> float:
        return sum(1 for e in events if e.is_error)

    def entity_labels(self, events: EventStore, window_events: Sequence[RawEvent]) -> Dict[int, str]:
        ids = sorted({e.entity_ref.id for e in window_events})
        if not ids:
            return {}
        return events.entity_labels(EntityType.ROUTE, ids)

    def rows(self, window: CardWindow) -> List[Dict[str, Any]]:
        totals: Dict[int, List[int]] = defaultdict(lambda: [0, 0])
        for event in window.events:
            counts = totals[event.entity_ref.id]
            counts[0] += 1
            if event.is_error:
                counts[1] += 1
        return [
            {
                "entity_id": entity_id,
                "path": window.labels.get(entity_id, f"route_{entity_id}"),
                "error_rate": error_rate_percentage(total, errors),
            }
            for entity_id, (total, errors) in sorted(totals.items())
        ]
