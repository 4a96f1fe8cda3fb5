"""Test settings.

In-memory database and in-memory booking storage so every test starts
from an empty calendar.
"""

from .base import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

BOOKINGS = {
    **BOOKINGS,  # noqa: F405
    'STORAGE_BACKEND': 'shared.infrastructure.storage.InMemoryStorage',
    'STORAGE_OPTIONS': {},
    'STORAGE_KEY': 'sommerhus_bookings',
    'FIRST_WEEKDAY': 6,
}
