"""Metric card capability.

A ``MetricCardSpec`` knows one metric: which event source it reads, how to
reduce a window of events to its headline statistic, what each weekly
sparkline point is, and which quantity its trend compares. ``compute`` is a
pure function of a ``CardWindow``; ``build`` fetches that window.

Card sparklines are sparse: a calendar week with no events has no point.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pulse.core.config import settings
from pulse.domain.models import EntityRef, EventSource, MetricCard, RawEvent, Trend
from pulse.infrastructure.base import EventStore
from pulse.metrics.bucketing import local_date, short_label, start_of_day, week_start
from pulse.metrics.statistics import round_half_up
from pulse.metrics.trend import TrendWindows, compute_trend, trend_windows

UNIT_MS = " ms"
UNIT_PER_MINUTE = " / min"
UNIT_PER_DAY = " / day"
UNIT_PERCENT = "%"


def card_window_start(now: datetime, days: int | None = None) -> datetime:
    days = settings.card_window_days if days is None else days
    return start_of_day(now - timedelta(days=days))


@dataclass(frozen=True)
class CardWindow:
    """Events of one scope over the card's fixed trailing window."""

    events: Sequence[RawEvent]
    now: datetime
    start: datetime
    scope: Optional[EntityRef] = None
    labels: Mapping[int, str] = field(default_factory=dict)

    @property
    def trend(self) -> TrendWindows:
        return trend_windows(self.now, settings.trend_window_days)

    @property
    def durations(self) -> List[float]:
        return [e.duration_ms for e in self.events]

    @property
    def timestamps(self) -> List[datetime]:
        return [e.occurred_at for e in self.events]

    @property
    def current(self) -> List[RawEvent]:
        return [e for e in self.events if self.trend.in_current(e.occurred_at)]

    @property
    def previous(self) -> List[RawEvent]:
        return [e for e in self.events if self.trend.in_previous(e.occurred_at)]

    def by_week(self, events: Sequence[RawEvent]) -> Dict[date, List[RawEvent]]:
        """Group by Monday-start calendar week in the zone of ``now``."""
        grouped: Dict[date, List[RawEvent]] = defaultdict(list)
        zone = self.now.tzinfo
        for event in events:
            grouped[week_start(local_date(event.occurred_at, zone))].append(event)
        return dict(sorted(grouped.items()))


class MetricCardSpec(ABC):
    metric_id: str
    title: str
    unit: str
    source: Optional[EventSource] = EventSource.REQUESTS
    signed_trend = False

    # Headline statistic and its rendering
    @abstractmethod
    def statistic(self, window: CardWindow) -> float: ...

    def format_statistic(self, value: float) -> str:
        return f"{round_half_up(value)}{self.unit}"

    # Sparkline
    @abstractmethod
    def week_value(self, events: Sequence[RawEvent]) -> float: ...

    def sparkline_events(self, window: CardWindow) -> Sequence[RawEvent]:
        return window.events

    # Trend
    @abstractmethod
    def trend_value(self, events: Sequence[RawEvent]) -> float: ...

    def rows(self, window: CardWindow) -> Optional[List[Dict[str, Any]]]:
        return None

    def entity_labels(self, events: EventStore, window_events: Sequence[RawEvent]) -> Dict[int, str]:
        return {}

    def sparkline(self, window: CardWindow) -> Dict[str, float]:
        return {
            short_label(week): self.week_value(events)
            for week, events in window.by_week(self.sparkline_events(window)).items()
        }

    def trend(self, window: CardWindow) -> Trend:
        return compute_trend(
            self.trend_value(window.current),
            self.trend_value(window.previous),
            signed=self.signed_trend,
        )

    def empty_card(self) -> MetricCard:
        return MetricCard(title=self.title, summary_text=f"0{self.unit}")

    def compute(self, window: CardWindow) -> MetricCard:
        if not window.events:
            return self.empty_card()
        return MetricCard(
            title=self.title,
            summary_text=self.format_statistic(self.statistic(window)),
            sparkline=self.sparkline(window),
            trend=self.trend(window),
            data=self.rows(window),
        )

    def build(self, scope: Optional[EntityRef], events: EventStore, now: datetime) -> MetricCard:
        """Fetch the fixed trailing window for ``scope`` and compute the card.

        Raises DataUnavailable from the store; the builder decides how to
        degrade.
        """
        start = card_window_start(now)
        window_events = events.events_for(self.source, scope, start, now)
        window = CardWindow(
            events=window_events,
            now=now,
            start=start,
            scope=scope,
            labels=self.entity_labels(events, window_events),
        )
        return self.compute(window)
