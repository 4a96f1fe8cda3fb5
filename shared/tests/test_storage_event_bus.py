"""Tests for the same-process storage event bus."""

from shared.application.message_bus import StorageEventBus
from shared.domain.events import StorageChanged


def event(origin, key="sommerhus_bookings"):
    return StorageChanged(key=key, new_value="[]", origin=origin)


def test_publish_skips_the_origin():
    bus = StorageEventBus()
    received = []
    bus.subscribe("sommerhus_bookings", "tab-1", lambda e: received.append(("tab-1", e)))
    bus.subscribe("sommerhus_bookings", "tab-2", lambda e: received.append(("tab-2", e)))

    delivered = bus.publish(event("tab-1"))

    assert delivered == 1
    assert [name for name, _ in received] == ["tab-2"]


def test_other_keys_are_not_delivered():
    bus = StorageEventBus()
    received = []
    bus.subscribe("sommerhus_messages", "tab-2", received.append)

    assert bus.publish(event("tab-1")) == 0
    assert received == []


def test_handler_errors_do_not_stop_delivery():
    bus = StorageEventBus()
    received = []

    def broken(e):
        raise ValueError("boom")

    bus.subscribe("sommerhus_bookings", "tab-2", broken)
    bus.subscribe("sommerhus_bookings", "tab-3", received.append)

    assert bus.publish(event("tab-1")) == 2
    assert len(received) == 1


def test_unsubscribe():
    bus = StorageEventBus()
    received = []
    unsubscribe = bus.subscribe("sommerhus_bookings", "tab-2", received.append)

    unsubscribe()
    unsubscribe()
    bus.publish(event("tab-1"))

    assert received == []
    assert bus.subscriber_count("sommerhus_bookings") == 0


def test_event_to_dict():
    data = event("tab-1").to_dict()

    assert data["event_type"] == "StorageChanged"
    assert data["key"] == "sommerhus_bookings"
    assert data["origin"] == "tab-1"
