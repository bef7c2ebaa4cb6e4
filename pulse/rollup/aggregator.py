"""Rollup of raw events into per-period Summary rows.

One invocation handles exactly one (period_type, anchor) pair. Every entity
with at least one event in the period gets a freshly computed row; rows are
written as a single batch that replaces whatever existed under the same
natural key. Hour and day rollups both read raw events, so a day row is
never the merge of hour rows.
"""

from __future__ import annotations

import time
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from pydantic import BaseModel

from pulse.core.errors import DataUnavailable
from pulse.core.logger import get_logger
from pulse.core.metrics import (
    ROLLUP_DURATION,
    ROLLUP_FAILURES,
    ROLLUP_ROWS,
    ROLLUP_RUNS,
)
from pulse.domain.models import (
    OVERALL_REQUESTS,
    EntityRef,
    EventSource,
    PeriodType,
    RawEvent,
    Summary,
)
from pulse.infrastructure.base import EventStore, SummaryStore
from pulse.metrics.bucketing import floor_period, period_end
from pulse.metrics.statistics import interpolated_percentile, sample_stddev

logger = get_logger("rollup.aggregator")


class RollupResult(BaseModel):
    period_type: PeriodType
    period_start: datetime
    period_end: datetime
    rows_written: Dict[str, int]

    @property
    def total_rows(self) -> int:
        return sum(self.rows_written.values())


def summarize_events(
    entity: EntityRef,
    period_type: PeriodType,
    start: datetime,
    end: datetime,
    events: Sequence[RawEvent],
) -> Summary:
    """Full Summary row for one entity over exactly ``events``."""
    if not events:
        raise ValueError("cannot summarize an empty period")
    durations = sorted(e.duration_ms for e in events)
    count = len(durations)
    total = sum(durations)
    mean = total / count
    return Summary(
        summarizable_type=entity.type,
        summarizable_id=entity.id,
        period_type=period_type,
        period_start=start,
        period_end=end,
        avg_duration=mean,
        max_duration=durations[-1],
        min_duration=durations[0],
        total_duration=total,
        count=count,
        error_count=sum(1 for e in events if e.is_error),
        p50_duration=interpolated_percentile(durations, 0.5),
        p95_duration=interpolated_percentile(durations, 0.95),
        p99_duration=interpolated_percentile(durations, 0.99),
        stddev_duration=sample_stddev(durations, mean),
    )


def _group_by_entity(events: Iterable[RawEvent]) -> Dict[EntityRef, List[RawEvent]]:
    grouped: Dict[EntityRef, List[RawEvent]] = defaultdict(list)
    for event in events:
        grouped[event.entity_ref].append(event)
    return grouped


class RollupAggregator:
    def __init__(self, events: EventStore, summaries: SummaryStore):
        self.events = events
        self.summaries = summaries

    def build_rows(
        self, period_type: PeriodType, start: datetime, end: datetime
    ) -> List[Summary]:
        rows: List[Summary] = []
        for source in EventSource:
            events = self.events.events_for(source, None, start, end)
            if not events:
                continue
            grouped = _group_by_entity(events)
            for entity in sorted(grouped, key=lambda ref: ref.id):
                rows.append(
                    summarize_events(entity, period_type, start, end, grouped[entity])
                )
            if source is EventSource.REQUESTS:
                rows.append(
                    summarize_events(OVERALL_REQUESTS, period_type, start, end, events)
                )
        return rows

    def run(self, period_type: PeriodType, anchor: datetime) -> RollupResult:
        """Recompute and replace every Summary row of the period containing ``anchor``.

        Raises DataUnavailable when either store fails; nothing is written in
        that case and the whole period should be retried on the next run.
        """
        period_type = PeriodType(period_type)
        start = floor_period(anchor, period_type)
        end = period_end(start, period_type)
        log_ctx = {
            "period_type": period_type.value,
            "period_start": start.isoformat(),
        }
        logger.info("rollup_started", extra=log_ctx)
        started = time.perf_counter()

        try:
            rows = self.build_rows(period_type, start, end)
            self.summaries.upsert_summaries(rows)
        except DataUnavailable:
            ROLLUP_FAILURES.labels(period_type=period_type.value).inc()
            logger.exception("rollup_failed", extra=log_ctx)
            raise

        written: Dict[str, int] = defaultdict(int)
        for row in rows:
            written[row.summarizable_type.value] += 1
        for summarizable_type, n in written.items():
            ROLLUP_ROWS.labels(summarizable_type=summarizable_type).inc(n)
        ROLLUP_RUNS.labels(period_type=period_type.value).inc()
        ROLLUP_DURATION.observe(time.perf_counter() - started)
        logger.info("rollup_completed", extra={**log_ctx, "rows": len(rows)})

        return RollupResult(
            period_type=period_type,
            period_start=start,
            period_end=end,
            rows_written=dict(written),
        )
