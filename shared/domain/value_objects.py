"""
Common Value Objects

Value objects used across the calendar:
- DateRange: Represents a stay (arrival to departure, both inclusive)
- YearMonth: A normalized calendar month, used for month navigation
- Identity: The user a session acts for
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import ValueObject
from shared.domain.datemath import (
    DateLike,
    days_in_month,
    iter_days,
    normalize_month,
    range_contains,
    to_date,
)

DEFAULT_COLOR = '#2563eb'


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date to end_date, both inclusive.
    A single-day stay has start_date == end_date.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"Start date ({self.start_date}) must not be after end date ({self.end_date})"
            )

    @classmethod
    def parse(cls, start: DateLike, end: DateLike) -> 'DateRange':
        return cls(to_date(start), to_date(end))

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range shares at least one day with another

        Both ends are inclusive, so a stay ending on the 18th overlaps
        one starting on the 18th.
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date <= other.end_date and self.end_date >= other.start_date

    def contains(self, check_date: DateLike) -> bool:
        """Check if a date (time of day ignored) falls within this range"""
        return range_contains(self.start_date, self.end_date, to_date(check_date))

    def days(self):
        return iter_days(self.start_date, self.end_date)

    def __len__(self) -> int:
        """Number of calendar days covered, both ends counted"""
        return (self.end_date - self.start_date).days + 1

    def __str__(self):
        return f"{self.start_date.strftime('%d.%m.%Y')} - {self.end_date.strftime('%d.%m.%Y')}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"


@dataclass(frozen=True)
class YearMonth(ValueObject):
    """
    Calendar month value object

    Built through ``YearMonth.of`` so month numbers outside 1..12 roll
    into the neighbouring year.
    """
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be within 1..12, got {self.month}")

    @classmethod
    def of(cls, year: int, month: int) -> 'YearMonth':
        return cls(*normalize_month(year, month))

    @classmethod
    def containing(cls, day: DateLike) -> 'YearMonth':
        day = to_date(day)
        return cls(day.year, day.month)

    def shift(self, months: int) -> 'YearMonth':
        return YearMonth.of(self.year, self.month + months)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, days_in_month(self.year, self.month))

    def __str__(self):
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class Identity(ValueObject):
    """
    The user a session acts for

    Supplied by the identity provider and read only when a booking is
    created.
    """
    id: str
    display_name: str = ''
    color: str = DEFAULT_COLOR

    def __post_init__(self):
        if not self.id:
            raise ValueError("Identity id is required")
