"""
app/services/time_windows.py

Date-interval builders for time-bucketed comparisons and the statistics
time filter.

Every interval is closed on both ends at calendar-date granularity, and every
builder takes an explicit ``reference`` date instead of reading the clock.

Rolling windows are adjacent and disjoint::

    last_n_days(ref, 30)      = [ref - 29, ref]
    previous_n_days(ref, 30)  = [ref - 59, ref - 30]
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Final

from app.domain.documents import DateInterval

PERIOD_ALL_TIME: Final[str] = "all-time"
PERIOD_YEAR: Final[str] = "year"
PERIOD_MONTH: Final[str] = "month"

TIME_FILTER_PERIODS: Final[tuple[str, ...]] = (PERIOD_ALL_TIME, PERIOD_YEAR, PERIOD_MONTH)


def _require_positive_days(days: int) -> None:
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}.")


def last_n_days(reference: date, days: int = 30) -> DateInterval:
    """The *days* calendar days ending on (and including) *reference*."""
    _require_positive_days(days)
    return DateInterval(start=reference - timedelta(days=days - 1), end=reference)


def previous_n_days(reference: date, days: int = 30) -> DateInterval:
    """The *days* calendar days immediately before :func:`last_n_days`."""
    _require_positive_days(days)
    current = last_n_days(reference, days)
    end = current.start - timedelta(days=1)
    return DateInterval(start=end - timedelta(days=days - 1), end=end)


def month_bounds(year: int, month: int) -> DateInterval:
    """First to last day of one calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return DateInterval(start=date(year, month, 1), end=date(year, month, last_day))


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Move ``(year, month)`` by *offset* months (negative goes back)."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def current_month(reference: date) -> DateInterval:
    """Month-to-date: first day of *reference*'s month through *reference*."""
    return DateInterval(start=reference.replace(day=1), end=reference)


def previous_month(reference: date) -> DateInterval:
    """The whole calendar month before *reference*'s month."""
    year, month = shift_month(reference.year, reference.month, -1)
    return month_bounds(year, month)


def period_interval(
    period: str,
    year: int | None = None,
    month: int | None = None,
) -> DateInterval | None:
    """
    Resolve the statistics time filter into an interval.

    ``"all-time"`` returns ``None`` (no filtering), ``"year"`` the whole
    calendar *year*, ``"month"`` the whole calendar *month* of *year*.

    Raises
    ------
    ValueError
        Unknown *period*, or the year/month required by it is missing or
        out of range.
    """
    if period == PERIOD_ALL_TIME:
        return None
    if period not in TIME_FILTER_PERIODS:
        raise ValueError(
            f"Unknown period {period!r}. Allowed values: {list(TIME_FILTER_PERIODS)}."
        )
    if year is None:
        raise ValueError(f"period {period!r} requires a year.")
    if period == PERIOD_YEAR:
        return DateInterval(start=date(year, 1, 1), end=date(year, 12, 31))
    if month is None or not 1 <= month <= 12:
        raise ValueError(f"period 'month' requires a month between 1 and 12, got {month!r}.")
    return month_bounds(year, month)
