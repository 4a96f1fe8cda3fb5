"""
Date Math

Pure, date-only arithmetic used by the booking store and the calendar
engine. Every comparison happens on calendar dates: time-of-day parts are
stripped before anything else looks at a value.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator

from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date, parse_datetime  # type: ignore

MONDAY = calendar.MONDAY
SUNDAY = calendar.SUNDAY

DateLike = date | datetime | str


def to_date(value: DateLike) -> date:
    """
    Coerce a date-like value to a calendar date

    Accepts ``date``, ``datetime`` (time part dropped) and ISO strings
    (``2024-02-15`` or ``2024-02-15T11:00:00``).

    Raises:
        ValueError: if the value cannot be read as a calendar date
        TypeError: if the value has an unsupported type
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        parsed = parse_date(text)
        if parsed is not None:
            return parsed
        parsed_dt = parse_datetime(text)
        if parsed_dt is not None:
            return parsed_dt.date()
        raise ValueError(f"Not an ISO date: {value!r}")
    raise TypeError(f"Cannot interpret {type(value).__name__} as a date")


def normalize_month(year: int, month: int) -> tuple[int, int]:
    """
    Normalize a 1-based month number, rolling the year as needed

    Examples:
        normalize_month(2024, 0)  -> (2023, 12)
        normalize_month(2024, 13) -> (2025, 1)
    """
    years, month_index = divmod(month - 1, 12)
    return year + years, month_index + 1


def days_in_month(year: int, month: int) -> int:
    year, month = normalize_month(year, month)
    return calendar.monthrange(year, month)[1]


def weekday_offset(day: date, first_weekday: int = SUNDAY) -> int:
    """Column of ``day`` in a week that starts on ``first_weekday`` (0-6)."""
    return (day.weekday() - first_weekday) % 7


def range_contains(start: date, end: date, day: date) -> bool:
    """Inclusive containment on both ends."""
    return start <= day <= end


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class Clock:
    """Source of the current time for stores and views."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall clock, timezone-aware when Django has USE_TZ enabled."""

    def now(self) -> datetime:
        return timezone.now()

    def today(self) -> date:
        now = self.now()
        if timezone.is_aware(now):
            now = timezone.localtime(now)
        return now.date()
