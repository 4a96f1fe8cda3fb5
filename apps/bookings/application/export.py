"""Plain-text overview of all bookings, for printing or sharing."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from apps.bookings.domain.entities import Booking

RULE = '=' * 60


def _format_date(value) -> str:
    return value.strftime('%d.%m.%Y')


def render_overview(
    bookings: Iterable[Booking],
    generated_at: datetime,
    title: str = 'SOMMERHUS - BOOKING OVERVIEW',
) -> str:
    bookings = sorted(bookings, key=lambda b: b.start_date)
    lines = [
        title,
        f"Generated: {generated_at.strftime('%d.%m.%Y %H:%M')}",
        f"Total bookings: {len(bookings)}",
        '',
        RULE,
        '',
    ]

    if not bookings:
        lines.append('No bookings found.')
        lines.append('')

    for index, booking in enumerate(bookings, start=1):
        lines.append(f"{index}. {booking.name}")
        lines.append(
            f"   Period: {_format_date(booking.start_date)} - {_format_date(booking.end_date)}"
        )
        lines.append(f"   Guests: {booking.guests}")
        times = []
        if booking.arrival_time:
            times.append(f"Arrival {booking.arrival_time}")
        if booking.departure_time:
            times.append(f"Departure {booking.departure_time}")
        if times:
            lines.append(f"   Times: {' | '.join(times)}")
        if booking.comments:
            lines.append(f"   Comment: {booking.comments}")
        lines.append('')

    lines.append(RULE)
    return '\n'.join(lines) + '\n'


def overview_filename(generated_at: datetime) -> str:
    return f"sommerhus_bookings_{generated_at.strftime('%d-%m-%Y')}.txt"
