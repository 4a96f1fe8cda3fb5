"""
Calendar View Engine

Stateless derivations of display structures from a booking collection:
month grids and per-day booking lists. Overlapping bookings are normal
here; nothing is detected or prevented.
"""

from __future__ import annotations

from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator, List, Sequence, overload

from django.conf import settings  # type: ignore

from shared.domain.datemath import SUNDAY, DateLike, days_in_month, to_date, weekday_offset
from shared.domain.value_objects import YearMonth
from apps.bookings.domain.entities import Booking


@dataclass(frozen=True)
class DaySlot:
    """One grid cell: a padding cell (``day`` is None) or a day of the month"""
    day: int | None = None
    date: date | None = None

    @property
    def is_placeholder(self) -> bool:
        return self.day is None


class MonthGrid(SequenceABC):
    """
    One calendar month as a sequence of DaySlots

    Leading placeholder slots pad the first week up to the weekday of
    day 1, then one slot follows per day of the month. Slots are computed
    on access, so the grid can be iterated any number of times.
    """

    def __init__(self, year: int, month: int, first_weekday: int = SUNDAY):
        self.month = YearMonth.of(year, month)
        self.first_weekday = first_weekday
        self.offset = weekday_offset(self.month.first_day, first_weekday)
        self.day_count = days_in_month(self.month.year, self.month.month)

    def __len__(self) -> int:
        return self.offset + self.day_count

    @overload
    def __getitem__(self, index: int) -> DaySlot: ...

    @overload
    def __getitem__(self, index: slice) -> List[DaySlot]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError("month grid index out of range")
        if index < self.offset:
            return DaySlot()
        day = index - self.offset + 1
        return DaySlot(day=day, date=self.month.first_day + timedelta(days=day - 1))

    def __iter__(self) -> Iterator[DaySlot]:
        for index in range(len(self)):
            yield self[index]

    def days(self) -> Iterator[DaySlot]:
        """Slots bound to a day, padding skipped"""
        return (slot for slot in self if not slot.is_placeholder)

    def weeks(self) -> List[List[DaySlot]]:
        """Rows of seven slots; the last row may be shorter"""
        slots = list(self)
        return [slots[i:i + 7] for i in range(0, len(slots), 7)]

    def __repr__(self):
        return f"MonthGrid({self.month}, offset={self.offset}, days={self.day_count})"


def configured_first_weekday() -> int:
    return getattr(settings, 'BOOKINGS', {}).get('FIRST_WEEKDAY', SUNDAY)


def month_grid(year: int, month: int, first_weekday: int | None = None) -> MonthGrid:
    """
    Grid for ``month`` of ``year``; months outside 1..12 roll the year

    Weeks start on ``first_weekday`` (0 = Monday ... 6 = Sunday), or on
    the configured ``BOOKINGS['FIRST_WEEKDAY']`` when omitted.
    """
    if first_weekday is None:
        first_weekday = configured_first_weekday()
    return MonthGrid(year, month, first_weekday)


def bookings_on_date(day: DateLike, collection: Iterable[Booking]) -> List[Booking]:
    """
    Every booking whose stay includes ``day``

    Both ends of a stay count and the time of day is ignored, so a
    booking checking out today still shows for all of today. Input order
    is preserved.
    """
    target = to_date(day)
    return [b for b in collection if b.start_date <= target <= b.end_date]


def bookings_in_month(month: YearMonth, collection: Iterable[Booking]) -> List[Booking]:
    """Bookings touching at least one day of ``month``, input order preserved"""
    first, last = month.first_day, month.last_day
    return [b for b in collection if b.start_date <= last and b.end_date >= first]


def is_today(day: DateLike, today: date) -> bool:
    return to_date(day) == today


def is_past(booking: Booking, today: date) -> bool:
    """True once the stay's last day is behind us"""
    return booking.end_date < today


def occupancy(grid: MonthGrid, collection: Sequence[Booking]) -> dict[int, List[Booking]]:
    """Bookings per day number of ``grid``, for days with at least one booking"""
    result = {}
    for slot in grid.days():
        found = bookings_on_date(slot.date, collection)
        if found:
            result[slot.day] = found
    return result
