from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Iterable, List

from pulse.core.config import settings
from pulse.core.logger import get_logger
from pulse.domain.models import PeriodType
from pulse.metrics.bucketing import advance_period, floor_period
from pulse.rollup.aggregator import RollupAggregator, RollupResult

logger = get_logger("rollup.backfill")


def backfill(
    aggregator: RollupAggregator,
    start: datetime,
    end: datetime,
    period_types: Iterable[PeriodType] | None = None,
    pause_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RollupResult]:
    """Run the aggregator for every period touching ``[start, end]``.

    Each period is its own invocation; a failure stops the backfill and
    leaves earlier periods committed.
    """
    if end < start:
        raise ValueError("backfill end precedes start")
    pause = settings.backfill_pause_seconds if pause_seconds is None else pause_seconds
    types = [PeriodType(p) for p in (period_types or settings.rollup_period_types)]

    results: List[RollupResult] = []
    for period_type in types:
        current = floor_period(start, period_type)
        last = floor_period(end, period_type)
        while current <= last:
            logger.info(
                "backfill_period",
                extra={"period_type": period_type.value, "period_start": current.isoformat()},
            )
            results.append(aggregator.run(period_type, current))
            current = advance_period(current, period_type)
            if pause and current <= last:
                sleep(pause)
    return results
