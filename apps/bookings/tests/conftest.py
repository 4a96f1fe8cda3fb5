from datetime import datetime, timedelta, timezone

import pytest

from apps.bookings.application.store import BookingStore
from apps.bookings.domain.entities import BookingDraft
from shared.application.message_bus import StorageEventBus
from shared.domain.datemath import Clock
from shared.domain.value_objects import Identity
from shared.infrastructure.storage import InMemoryStorage


class TickingClock(Clock):
    """Deterministic clock that moves forward one second per reading."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return TickingClock(datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def bus():
    return StorageEventBus()


@pytest.fixture
def anna():
    return Identity(id="user-anna", display_name="Anna", color="#16a34a")


@pytest.fixture
def errors():
    return []


@pytest.fixture
def make_store(storage, bus, clock, errors):
    created = []

    def factory(identity=None, **kwargs):
        kwargs.setdefault("storage", storage)
        kwargs.setdefault("bus", bus)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("on_error", errors.append)
        store = BookingStore(
            kwargs.pop("storage"),
            kwargs.pop("bus"),
            identity=identity,
            **kwargs,
        )
        store.load()
        created.append(store)
        return store

    yield factory
    for store in created:
        store.close()


@pytest.fixture
def store(make_store, anna):
    return make_store(anna)


@pytest.fixture
def hansen():
    return BookingDraft(name="Hansen", start_date="2024-02-15", end_date="2024-02-18", guests=4)


@pytest.fixture
def larsen():
    return BookingDraft(name="Larsen", start_date="2024-02-17", end_date="2024-02-20", guests=2)
