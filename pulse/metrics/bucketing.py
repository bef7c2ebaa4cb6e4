from datetime import date, datetime, timedelta, tzinfo
from typing import List

from pulse.domain.models import PeriodType

_PERIOD_STEP = {
    PeriodType.HOUR: timedelta(hours=1),
    PeriodType.DAY: timedelta(days=1),
}


def _require_zone(ts: datetime) -> None:
    if ts.tzinfo is None:
        raise ValueError("timestamp must carry a timezone")


def floor_period(ts: datetime, period_type: PeriodType) -> datetime:
    """Start of the hour/day containing ``ts``, in the zone ``ts`` carries."""
    _require_zone(ts)
    period_type = PeriodType(period_type)
    if period_type is PeriodType.HOUR:
        return ts.replace(minute=0, second=0, microsecond=0)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def period_end(period_start: datetime, period_type: PeriodType) -> datetime:
    return period_start + _PERIOD_STEP[PeriodType(period_type)]


def advance_period(ts: datetime, period_type: PeriodType) -> datetime:
    return period_end(floor_period(ts, period_type), period_type)


def start_of_day(ts: datetime) -> datetime:
    return floor_period(ts, PeriodType.DAY)


def local_date(ts: datetime, zone: tzinfo) -> date:
    return ts.astimezone(zone).date()


def week_start(day: date) -> date:
    """Monday of the calendar week containing ``day``."""
    return day - timedelta(days=day.weekday())


def short_label(day: date) -> str:
    """Month + day label, e.g. "Jan 5"."""
    return f"{day:%b} {day.day}"


def enumerate_days(first: date, last: date) -> List[date]:
    """Inclusive list of calendar dates from ``first`` to ``last``."""
    days = []
    current = first
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days
