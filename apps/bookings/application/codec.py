"""
Booking collection codec

Converts between the JSON text held in durable storage and Booking
records. Decoding is all-or-nothing: one malformed record rejects the
whole collection.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Iterable, Sequence

from django.utils.dateparse import parse_date, parse_datetime  # type: ignore

from shared.domain.value_objects import DEFAULT_COLOR
from apps.bookings.domain.entities import Booking
from apps.bookings.domain.exceptions import IntegrityError

# Field names written by the older calendar variant
LEGACY_ALIASES = {
    'ownerId': 'userId',
    'ownerColor': 'userColor',
}


def booking_to_record(booking: Booking) -> dict[str, Any]:
    return {
        'id': booking.id,
        'name': booking.name,
        'startDate': booking.start_date.isoformat(),
        'endDate': booking.end_date.isoformat(),
        'guests': booking.guests,
        'ownerId': booking.owner_id,
        'ownerColor': booking.owner_color,
        'createdAt': booking.created_at.isoformat() if booking.created_at else None,
        'arrivalTime': booking.arrival_time,
        'departureTime': booking.departure_time,
        'comments': booking.comments,
    }


def encode_collection(bookings: Iterable[Booking]) -> str:
    return json.dumps([booking_to_record(b) for b in bookings], ensure_ascii=False)


def _field(record: dict, name: str, default: Any = None) -> Any:
    if name in record:
        return record[name]
    alias = LEGACY_ALIASES.get(name)
    if alias and alias in record:
        return record[alias]
    return default


def _date(value: Any, name: str) -> date:
    parsed = None
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is None:
            parsed_dt = parse_datetime(value)
            parsed = parsed_dt.date() if parsed_dt else None
    if parsed is None:
        raise ValueError(f"{name} is not an ISO date: {value!r}")
    return parsed


def _optional_datetime(value: Any) -> datetime | None:
    if value in (None, ''):
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed
    raise ValueError(f"createdAt is not an ISO datetime: {value!r}")


def _text(value: Any, name: str) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValueError(f"{name} must be text, got {value!r}")
    return value


def record_to_booking(record: Any) -> Booking:
    """
    Build a Booking from one stored record

    Raises:
        ValueError / TypeError: if the record does not have the booking shape
    """
    if not isinstance(record, dict):
        raise TypeError(f"Booking record must be an object, got {type(record).__name__}")

    owner_id = _field(record, 'ownerId')
    if isinstance(owner_id, int) and not isinstance(owner_id, bool):
        owner_id = str(owner_id)

    return Booking(
        id=record.get('id'),
        name=record.get('name'),
        start_date=_date(record.get('startDate'), 'startDate'),
        end_date=_date(record.get('endDate'), 'endDate'),
        guests=record.get('guests'),
        owner_id=owner_id,
        owner_color=_field(record, 'ownerColor') or DEFAULT_COLOR,
        created_at=_optional_datetime(record.get('createdAt')),
        arrival_time=_text(record.get('arrivalTime'), 'arrivalTime'),
        departure_time=_text(record.get('departureTime'), 'departureTime'),
        comments=_text(record.get('comments'), 'comments'),
    )


def decode_collection(raw: str, key: str | None = None) -> list[Booking]:
    """
    Parse the durable text into bookings

    Raises:
        IntegrityError: if the text is not JSON, not a list, or holds any
            malformed record
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as e:
        raise IntegrityError(f"Stored bookings are not valid JSON: {e}", key=key) from e

    if not isinstance(data, list):
        raise IntegrityError(
            f"Stored bookings must be a list, got {type(data).__name__}", key=key
        )

    bookings = []
    for index, record in enumerate(data):
        try:
            bookings.append(record_to_booking(record))
        except (TypeError, ValueError) as e:
            raise IntegrityError(f"Stored booking #{index} is malformed: {e}", key=key) from e

    if len({b.id for b in bookings}) != len(bookings):
        raise IntegrityError("Stored bookings contain duplicate ids", key=key)
    return bookings


def check_collection(collection: Any) -> list[Booking]:
    """
    Make sure ``collection`` is a sequence of Booking records

    Raises:
        IntegrityError: if it is not
    """
    if isinstance(collection, (str, bytes, dict)) or not isinstance(collection, Sequence):
        raise IntegrityError(
            f"Booking collection must be a sequence, got {type(collection).__name__}"
        )
    for index, item in enumerate(collection):
        if not isinstance(item, Booking):
            raise IntegrityError(
                f"Collection item #{index} is not a Booking: {type(item).__name__}"
            )
    ids = [b.id for b in collection]
    if len(ids) != len(set(ids)):
        raise IntegrityError("Booking collection contains duplicate ids")
    return list(collection)
