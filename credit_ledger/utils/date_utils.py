"""Date manipulation utilities"""

import calendar
import math
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 24 * 60 * 60


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the end of the target month"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return from_date.replace(year=year, month=month, day=day)


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def days_between(later: DateLike, earlier: DateLike, ceil: bool = True) -> int:
    """
    Whole days from earlier to later.

    Plain dates differ by an exact day count. When either side carries a time,
    a partial day rounds up (ceil=True) or down (ceil=False).
    """
    if type(later) is date and type(earlier) is date:
        return (later - earlier).days

    seconds = (_as_datetime(later) - _as_datetime(earlier)).total_seconds()
    days = seconds / SECONDS_PER_DAY
    return math.ceil(days) if ceil else math.floor(days)


def months_between(later: date, earlier: Optional[date]) -> float:
    """Elapsed months using 30-day months, never negative"""
    if earlier is None:
        return 0.0
    return max(0.0, days_between(later, earlier, ceil=False) / 30)


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    return datetime(value.year, value.month, value.day)
