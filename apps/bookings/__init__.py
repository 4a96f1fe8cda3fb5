"""Bookings app package.

This app encapsulates the shared reservation calendar: the booking
records, the store that keeps each open session's collection in step
with durable storage and with the other sessions, and the month and
day views derived from it. Overlapping stays are allowed and only shown.
"""
