"""
Booking Errors

- ValidationError: bad user input, recovered where it was raised
- IntegrityError: durable value is not a well-formed booking collection
- SyncError: writing the durable value failed
"""


class BookingError(Exception):
    """Base class for booking store errors"""

    #: Whether offering the user a retry makes sense
    retryable = False
    #: How the notice pathway presents the error
    notice_level = 'error'


class ValidationError(BookingError):
    """
    A draft booking failed validation

    ``fields`` maps every offending field name to a message.
    """

    notice_level = 'warning'

    def __init__(self, fields: dict[str, str]):
        self.fields = dict(fields)
        names = ', '.join(sorted(self.fields))
        super().__init__(f"Invalid booking fields: {names}")


class IntegrityError(BookingError):
    """The stored booking collection is unreadable or malformed"""

    retryable = True

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class SyncError(BookingError):
    """The booking collection could not be written to durable storage"""

    retryable = True
