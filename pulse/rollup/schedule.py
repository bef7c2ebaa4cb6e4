from datetime import datetime, timedelta
from typing import List, Tuple

from pulse.domain.models import PeriodType
from pulse.metrics.bucketing import floor_period


def due_periods(trigger: datetime) -> List[Tuple[PeriodType, datetime]]:
    """Periods that completed just before ``trigger``.

    Always the previous hour; additionally the previous day when that hour
    is the first hour of a day. Invoking the aggregator for these is left to
    the external scheduler.
    """
    completed_hour = floor_period(trigger, PeriodType.HOUR) - timedelta(hours=1)
    due = [(PeriodType.HOUR, completed_hour)]
    if completed_hour.hour == 0:
        due.append((PeriodType.DAY, floor_period(completed_hour - timedelta(days=1), PeriodType.DAY)))
    return due
