"""
Booking Domain Entities

Core records of the shared calendar:
- Booking: one family's stay at the property
- BookingDraft: raw form input that becomes a Booking once validated
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from django.utils.dateparse import parse_time  # type: ignore

from shared.domain.datemath import DateLike, to_date
from shared.domain.value_objects import DEFAULT_COLOR, DateRange, Identity
from apps.bookings.domain.exceptions import ValidationError


@dataclass(frozen=True)
class Booking:
    """
    Booking record

    Bookings are immutable. The store only ever adds or drops whole
    records, so "editing" a stay means removing it and creating a new one.

    Key invariants:
    - name is not blank
    - start_date <= end_date (both ends inclusive)
    - guests >= 1
    - owner_color is bound when the booking is created and never recomputed
    """

    id: int
    name: str
    start_date: date
    end_date: date
    guests: int = 1
    owner_id: str | None = None
    owner_color: str = DEFAULT_COLOR
    created_at: datetime | None = None
    arrival_time: str = ''
    departure_time: str = ''
    comments: str = ''

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise TypeError(f"Booking id must be an integer, got {self.id!r}")
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Booking name must not be blank")
        for label in ('start_date', 'end_date'):
            value = getattr(self, label)
            if isinstance(value, datetime) or not isinstance(value, date):
                raise TypeError(f"{label} must be a date, got {value!r}")
        if self.start_date > self.end_date:
            raise ValueError(
                f"Start date ({self.start_date}) must not be after end date ({self.end_date})"
            )
        if isinstance(self.guests, bool) or not isinstance(self.guests, int):
            raise TypeError(f"Guests count must be an integer, got {self.guests!r}")
        if self.guests < 1:
            raise ValueError("Guests count must be at least 1")
        if self.owner_id is not None and not isinstance(self.owner_id, str):
            raise TypeError(f"Owner id must be a string or None, got {self.owner_id!r}")
        if not isinstance(self.owner_color, str) or not self.owner_color:
            raise ValueError("Owner color must be a non-empty string")

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def days(self) -> int:
        """Number of calendar days the stay touches"""
        return len(self.dates)

    def covers(self, day: DateLike) -> bool:
        return self.dates.contains(day)

    def can_be_deleted_by(self, identity: Identity | None) -> bool:
        """
        Advisory ownership check used to hide the delete control

        The store itself never enforces this. Bookings created without an
        identity can be deleted by anyone.
        """
        if self.owner_id is None:
            return True
        return identity is not None and identity.id == self.owner_id

    def __str__(self):
        return f"{self.name} ({self.dates}, {self.guests} guests)"


def _coerce_guests(value: Any) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError
        value = int(value)
    if isinstance(value, str):
        value = int(value.strip())
    if not isinstance(value, int):
        raise ValueError
    return value


def _is_storable_text(value: str) -> bool:
    # Lone surrogates cannot be written as UTF-8
    try:
        value.encode('utf-8')
    except UnicodeEncodeError:
        return False
    return True


def _clean_time(value: Any) -> str:
    if value is None or value == '':
        return ''
    if not isinstance(value, str):
        raise ValueError
    parsed = parse_time(value.strip())
    if parsed is None:
        raise ValueError
    return parsed.strftime('%H:%M')


@dataclass
class BookingDraft:
    """
    User-submitted booking form

    Values are taken as typed into the form: dates may be ``date``,
    ``datetime`` or ISO strings and the guest count may be a numeric
    string. Nothing is checked until ``clean()``.
    """

    name: Any = ''
    start_date: Any = None
    end_date: Any = None
    guests: Any = 1
    arrival_time: Any = ''
    departure_time: Any = ''
    comments: Any = ''

    def clean(self) -> dict:
        """
        Validate and normalize the draft

        Returns a dict with ``name``, ``start_date``, ``end_date``,
        ``guests``, ``arrival_time``, ``departure_time`` and ``comments``.

        Raises:
            ValidationError: naming every missing or invalid field
        """
        errors: dict[str, str] = {}
        cleaned: dict[str, Any] = {}

        name = self.name.strip() if isinstance(self.name, str) else ''
        if not name:
            errors['name'] = "Name is required"
        elif not _is_storable_text(name):
            errors['name'] = "Name contains characters that cannot be saved"
        cleaned['name'] = name

        for label in ('start_date', 'end_date'):
            raw = getattr(self, label)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                errors[label] = "Date is required"
                continue
            try:
                cleaned[label] = to_date(raw)
            except (TypeError, ValueError):
                errors[label] = f"Not a valid date: {raw!r}"

        if 'start_date' in cleaned and 'end_date' in cleaned:
            if cleaned['start_date'] > cleaned['end_date']:
                errors['end_date'] = "End date must be on or after the start date"

        try:
            guests = _coerce_guests(self.guests)
        except ValueError:
            errors['guests'] = f"Not a whole number: {self.guests!r}"
        else:
            if guests < 1:
                errors['guests'] = "At least one guest is required"
            cleaned['guests'] = guests

        for label in ('arrival_time', 'departure_time'):
            try:
                cleaned[label] = _clean_time(getattr(self, label))
            except ValueError:
                errors[label] = f"Not a valid time: {getattr(self, label)!r}"

        comments = self.comments if self.comments is not None else ''
        if not isinstance(comments, str):
            errors['comments'] = "Comments must be text"
        elif not _is_storable_text(comments):
            errors['comments'] = "Comments contain characters that cannot be saved"
        cleaned['comments'] = comments.strip() if isinstance(comments, str) else ''

        if errors:
            raise ValidationError(errors)
        return cleaned

    def build(
        self,
        booking_id: int,
        created_at: datetime,
        identity: Identity | None = None,
        default_color: str = DEFAULT_COLOR,
    ) -> Booking:
        """Validate the draft and turn it into a Booking owned by ``identity``"""
        cleaned = self.clean()
        return Booking(
            id=booking_id,
            owner_id=identity.id if identity else None,
            owner_color=(identity.color if identity and identity.color else default_color),
            created_at=created_at,
            **cleaned,
        )
