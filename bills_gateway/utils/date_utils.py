"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

VIEW_TYPES = ("day", "week", "month", "year")


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month (leap-year aware)"""
    return calendar.monthrange(year, month)[1]


def add_months(from_date: date, months: int, anchor_day: Optional[int] = None) -> date:
    """
    Move a date by whole months, landing on anchor_day (default: from_date's day).

    Days past the end of the target month clamp to its last day, so
    Jan 31 + 1 month = Feb 28/29 and the anchor is never rolled into March.
    """
    day = anchor_day if anchor_day is not None else from_date.day
    return from_date + relativedelta(months=months, day=day)


def month_index(day: date) -> int:
    """Absolute month counter used for month-distance arithmetic"""
    return day.year * 12 + (day.month - 1)


def days_between(start: date, end: date) -> int:
    """Signed whole-day difference end - start"""
    return (end - start).days


def window_bounds_for_view(view_type: str, anchor: date) -> Tuple[date, date]:
    """
    Inclusive date range for a Bills view type around an anchor date.

    - day:   the anchor itself
    - week:  Monday through Sunday containing the anchor
    - month: first through last day of the anchor's month
    - year:  Jan 1 through Dec 31
    """
    if view_type == "day":
        return anchor, anchor
    if view_type == "week":
        start = anchor - timedelta(days=anchor.weekday())
        return start, start + timedelta(days=6)
    if view_type == "month":
        return (
            anchor.replace(day=1),
            anchor.replace(day=last_day_of_month(anchor.year, anchor.month)),
        )
    if view_type == "year":
        return date(anchor.year, 1, 1), date(anchor.year, 12, 31)
    raise ValueError(f"Unknown view type: {view_type}")
