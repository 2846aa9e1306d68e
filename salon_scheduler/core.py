# salon_scheduler/core.py

from datetime import date, datetime, time, timedelta
from enum import IntEnum


class Weekday(IntEnum):
    # same ordinals as date.weekday()
    monday = 0
    tuesday = 1
    wednesday = 2
    thursday = 3
    friday = 4
    saturday = 5
    sunday = 6


def weekday_of(moment) -> Weekday:
    return Weekday(moment.weekday())


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    # half-open intervals: touching ends do not overlap
    return start_a < end_b and start_b < end_a


def within_day_window(start: datetime, end: datetime, window_start: time, window_end: time) -> bool:
    """True when [start, end) sits on one calendar day inside [window_start, window_end]."""
    day_open = datetime.combine(start.date(), window_start)
    day_close = datetime.combine(start.date(), window_end)
    return day_open <= start and end <= day_close


def day_bounds(on_date: date) -> tuple[datetime, datetime]:
    day_start = datetime.combine(on_date, time.min)
    return day_start, day_start + timedelta(days=1)


def fmt_time(value: time) -> str:
    return value.strftime("%H:%M")
