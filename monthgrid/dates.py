"""
Date and calendar math shared by the grid calculator and the builder.

Weekday offsets are counted from a configurable week start:
0 = weeks begin on Sunday, 1 = weeks begin on Monday.
"""

import math
from datetime import date, datetime, time, timedelta
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple, Union

DateLike = Union[date, datetime]

# =============================================================================
# LOCALE TABLES
# =============================================================================

MONTH_NAMES = ["January", "February", "March", "April", "May", "June",
               "July", "August", "September", "October", "November", "December"]
# Sunday first, rotated by the builder according to the week start
DAY_NAMES_SHORT = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

MONTH_NAMES_DE = ["Januar", "Februar", "März", "April", "Mai", "Juni",
                  "Juli", "August", "September", "Oktober", "November", "Dezember"]
DAY_NAMES_SHORT_DE = ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"]

LOCALES: Dict[str, Tuple[List[str], List[str]]] = {
    "en": (MONTH_NAMES, DAY_NAMES_SHORT),
    "de": (MONTH_NAMES_DE, DAY_NAMES_SHORT_DE),
}


class WeekStart(IntEnum):
    SUNDAY = 0
    MONDAY = 1


class MonthYear(NamedTuple):
    month: int
    year: int


# =============================================================================
# MONTH MATH
# =============================================================================

def _check_month(month: int):
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be 1-12, got {month}")


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month: the day before the 1st of the next month."""
    _check_month(month)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return (date(next_year, next_month, 1) - timedelta(days=1)).day


def first_weekday_offset(year: int, month: int, week_start: int = WeekStart.MONDAY) -> int:
    """Column (0-6) of the 1st of the month relative to the week start."""
    _check_month(month)
    if week_start not in (WeekStart.SUNDAY, WeekStart.MONDAY):
        raise ValueError(f"Week start must be 0 (Sunday) or 1 (Monday), got {week_start}")
    # date.weekday() is Monday=0; shift to Sunday=0
    sunday_based = (date(year, month, 1).weekday() + 1) % 7
    return (sunday_based + 7 - week_start) % 7


def weeks_in_month(year: int, month: int, week_start: int = WeekStart.MONDAY) -> int:
    """Number of grid rows needed to show the month."""
    total = days_in_month(year, month) + first_weekday_offset(year, month, week_start)
    return math.ceil(total / 7)


def first_day_of_month(year: int, month: int) -> datetime:
    _check_month(month)
    return datetime(year, month, 1)


def last_day_of_month(year: int, month: int) -> datetime:
    """Last instant of the month (23:59:59.999999 on its last day)."""
    return datetime.combine(date(year, month, days_in_month(year, month)), time.max)


# =============================================================================
# ITERATION
# =============================================================================

def iterate_days_of_month(year: int, month: int) -> Iterator[date]:
    for day in range(1, days_in_month(year, month) + 1):
        yield date(year, month, day)


def iterate_date_range(start: DateLike, end: DateLike) -> Iterator[date]:
    """Every calendar day from start to end inclusive, time of day ignored."""
    current = _as_date(start)
    last = _as_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


# =============================================================================
# COMPARISONS
# =============================================================================

def is_same_day(a: DateLike, b: DateLike) -> bool:
    return _as_date(a) == _as_date(b)


def is_in_month(value: DateLike, year: int, month: int) -> bool:
    return value.year == year and value.month == month


def is_date_in_range(value: datetime, start: datetime, end: datetime) -> bool:
    return start <= value <= end


def is_all_day_event(start: datetime, end: Optional[datetime]) -> bool:
    """Midnight start with no end, a midnight end, or a 23:59 end.

    23:59 is how the upstream calendar marks "until the end of the day".
    """
    if start.hour != 0 or start.minute != 0:
        return False
    if end is None:
        return True
    return (end.hour, end.minute) in ((0, 0), (23, 59))


def is_multi_day_event(start: datetime, end: Optional[datetime]) -> bool:
    if end is None:
        return False
    return not is_same_day(start, end)


# =============================================================================
# FORMATTING
# =============================================================================

def format_month_year(month: int, year: int, month_names: Optional[List[str]] = None) -> str:
    """e.g. "April 2024"."""
    _check_month(month)
    names = month_names or MONTH_NAMES
    return f"{names[month - 1]} {year}"


def format_date(value: DateLike) -> str:
    """e.g. "15.01.2024"."""
    return f"{value.day:02d}.{value.month:02d}.{value.year}"


def format_time(value: datetime, show_minutes: bool = True) -> str:
    """e.g. "14h" or "14:30h"."""
    if not show_minutes or value.minute == 0:
        return f"{value.hour}h"
    return f"{value.hour}:{value.minute:02d}h"


# =============================================================================
# TIME RANGES
# =============================================================================

class TimeRange(str, Enum):
    CURRENT = "current"
    PREVIOUS = "previous"
    NEXT = "next"
    YEAR = "year"


def shift_month(month: int, year: int, delta: int) -> MonthYear:
    index = year * 12 + (month - 1) + delta
    return MonthYear(index % 12 + 1, index // 12)


def calculate_date_range(time_range: Union[TimeRange, str],
                         today: Optional[date] = None) -> Tuple[datetime, datetime, List[MonthYear]]:
    """Start, end and month list for a relative time range.

    ``year`` means twelve months starting with the current one.
    """
    time_range = TimeRange(time_range)
    today = today or date.today()

    if time_range is TimeRange.PREVIOUS:
        months = [shift_month(today.month, today.year, -1)]
    elif time_range is TimeRange.NEXT:
        months = [shift_month(today.month, today.year, 1)]
    elif time_range is TimeRange.YEAR:
        months = [shift_month(today.month, today.year, i) for i in range(12)]
    else:
        months = [MonthYear(today.month, today.year)]

    first, last = months[0], months[-1]
    return (first_day_of_month(first.year, first.month),
            last_day_of_month(last.year, last.month),
            months)


def calculate_year_range(year: int) -> Tuple[datetime, datetime, List[MonthYear]]:
    """January to December of one year."""
    months = [MonthYear(m, year) for m in range(1, 13)]
    return first_day_of_month(year, 1), last_day_of_month(year, 12), months
