"""Tests for broadcasting and reconciliation between execution contexts."""

from __future__ import annotations

import json

from apps.bookings.domain.entities import BookingDraft
from shared.application.message_bus import StorageEventBus

KEY = "sommerhus_bookings"


def draft(name, start, end):
    return BookingDraft(name=name, start_date=start, end_date=end)


def test_other_context_reloads_after_create(make_store, hansen):
    x = make_store()
    y = make_store()
    seen = []
    y.on_external_change(seen.append)

    booking = x.create(hansen)

    assert y.bookings == (booking,)
    assert seen == [[booking]]


def test_publisher_is_not_notified_of_its_own_write(make_store, hansen):
    x = make_store()
    own = []
    x.on_external_change(own.append)

    x.create(hansen)

    assert own == []


def test_last_full_write_wins_without_merge_conflict(make_store, errors):
    x = make_store()
    y = make_store()
    d = y.create(draft("D", "2024-01-05", "2024-01-07"))

    c = x.create(draft("C", "2024-02-01", "2024-02-03"))
    y.remove(d.id)

    assert c in x.bookings
    assert d not in x.bookings
    assert x.bookings == y.bookings
    assert errors == []


def test_stale_context_overwrites_concurrent_write(storage, clock, errors, make_store):
    # Two contexts that cannot hear each other race on the same storage
    x = make_store(bus=StorageEventBus())
    y = make_store(bus=StorageEventBus())

    x.create(draft("From X", "2024-02-01", "2024-02-02"))
    y.create(draft("From Y", "2024-02-05", "2024-02-06"))

    stored = [r["name"] for r in json.loads(storage.get_item(KEY))]
    assert stored == ["From Y"]

    assert x.sync() is True
    assert [b.name for b in x.bookings] == ["From Y"]


def test_payload_is_ignored_in_favour_of_storage(make_store, storage, bus, hansen):
    from shared.domain.events import StorageChanged

    x = make_store()
    booking = x.create(hansen)
    y = make_store()

    bus.publish(StorageChanged(key=KEY, new_value="[]", origin="someone-else"))

    assert y.bookings == (booking,)


def test_external_corruption_is_reported_to_listener(make_store, storage, bus, errors):
    from apps.bookings.domain.exceptions import IntegrityError
    from shared.domain.events import StorageChanged

    x = make_store()
    x.create(draft("Hansen", "2024-02-15", "2024-02-18"))
    seen = []
    x.on_external_change(seen.append)

    storage.set_item(KEY, "{broken")
    bus.publish(StorageChanged(key=KEY, new_value="{broken", origin="other-tab"))

    assert x.bookings == ()
    assert seen == [[]]
    assert isinstance(errors[-1], IntegrityError)
    assert storage.get_item(KEY) == "{broken"


def test_failing_handler_does_not_break_publisher(make_store, hansen, errors):
    x = make_store()
    y = make_store()
    z = make_store()

    def explode(bookings):
        raise RuntimeError("render failed")

    y.on_external_change(explode)

    booking = x.create(hansen)

    assert x.bookings == (booking,)
    assert z.bookings == (booking,)
    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)


def test_unreadable_value_picked_up_by_sync(make_store, tmp_path, errors):
    from apps.bookings.domain.exceptions import IntegrityError
    from shared.infrastructure.storage import FileStorage

    x = make_store(storage=FileStorage(tmp_path), bus=StorageEventBus())
    (tmp_path / f"{KEY}.json").write_bytes(b"\xff\xfe[]")

    assert x.sync() is True
    assert x.sync() is False
    assert len(errors) == 1
    assert isinstance(errors[0], IntegrityError)


def test_unregistered_handler_is_not_called(make_store, hansen):
    x = make_store()
    y = make_store()
    seen = []
    unregister = y.on_external_change(seen.append)
    unregister()

    x.create(hansen)

    assert seen == []
    assert len(y.bookings) == 1


def test_closed_store_stops_listening(make_store, bus, hansen):
    x = make_store()
    y = make_store()
    y.close()

    x.create(hansen)

    assert y.bookings == ()
    assert bus.subscriber_count(KEY) == 1


def test_sync_without_change_does_nothing(make_store, hansen):
    x = make_store(bus=StorageEventBus())
    x.create(hansen)
    seen = []
    x.on_external_change(seen.append)

    assert x.sync() is False
    assert seen == []


def test_sync_picks_up_write_from_unreachable_context(make_store, hansen):
    x = make_store(bus=StorageEventBus())
    y = make_store(bus=StorageEventBus())
    seen = []
    x.on_external_change(seen.append)

    booking = y.create(hansen)

    assert x.bookings == ()
    assert x.sync() is True
    assert seen == [[booking]]
