"""
Booking Store

Single source of truth for the booking collection inside one execution
context (one open calendar session). Several stores may share the same
durable storage and event bus; they converge by reloading the whole
collection whenever another context announces a write.

Consistency model:
- Within a context, operations are totally ordered.
- Across contexts, the last complete write to durable storage wins.
  Concurrent writes are not merged; the earlier one is lost.
- A failed write leaves both durable storage and the in-memory
  collection exactly as they were.
"""

from __future__ import annotations

import bisect
import uuid
from typing import Callable, List, Sequence

import structlog
from django.conf import settings  # type: ignore
from django.utils.module_loading import import_string  # type: ignore

from shared.application.message_bus import StorageEventBus, storage_bus
from shared.domain.datemath import Clock, SystemClock
from shared.domain.events import StorageChanged
from shared.domain.value_objects import DEFAULT_COLOR, Identity
from shared.infrastructure.storage import KeyValueStorage, StorageError, UnreadableValue
from apps.bookings.application.codec import check_collection, decode_collection, encode_collection
from apps.bookings.domain.entities import Booking, BookingDraft
from apps.bookings.domain.exceptions import IntegrityError, SyncError

logger = structlog.get_logger(__name__)

DEFAULT_STORAGE_KEY = 'sommerhus_bookings'

ChangeHandler = Callable[[List[Booking]], None]
# Receives BookingErrors and whatever an external-change handler raised
ErrorReporter = Callable[[Exception], None]

# Stands in for a stored value that could not be read as text
_UNREADABLE = object()


def _sorted_by_start(bookings: Sequence[Booking]) -> List[Booking]:
    # sorted() is stable, so equal start dates keep their order
    return sorted(bookings, key=lambda b: b.start_date)


class BookingStore:
    """
    Booking collection of one execution context

    Usage:
        store = BookingStore(storage, bus, identity=Identity('u1', 'Anna', '#16a34a'))
        store.load()
        booking = store.create(BookingDraft(name='Hansen',
                                            start_date='2024-02-15',
                                            end_date='2024-02-18',
                                            guests=4))
        store.on_external_change(lambda bookings: redraw(bookings))
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        bus: StorageEventBus | None = None,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        identity: Identity | None = None,
        clock: Clock | None = None,
        default_color: str = DEFAULT_COLOR,
        on_error: ErrorReporter | None = None,
        context_id: str | None = None,
    ):
        self.storage = storage
        self.bus = bus if bus is not None else StorageEventBus()
        self.key = key
        self.identity = identity
        self.clock = clock or SystemClock()
        self.default_color = default_color
        self.context_id = context_id or uuid.uuid4().hex
        self._on_error = on_error
        self._bookings: List[Booking] = []
        self._handlers: List[ChangeHandler] = []
        self._last_seen: object = None
        self._log = logger.bind(context=self.context_id, key=self.key)
        self._unsubscribe = self.bus.subscribe(self.key, self.context_id, self._handle_storage_changed)

    # ── reads ────────────────────────────────────────────────────────────

    @property
    def bookings(self) -> tuple[Booking, ...]:
        return tuple(self._bookings)

    def get(self, booking_id: int) -> Booking | None:
        return next((b for b in self._bookings if b.id == booking_id), None)

    def load(self) -> List[Booking]:
        """
        Replace the in-memory collection with the durable one

        A missing value means an empty calendar. A malformed or non-text
        value resets the collection to empty and reports one IntegrityError;
        the stored value is left untouched so it can still be inspected. A
        failed read also empties the collection and reports a SyncError.
        Never writes.
        """
        try:
            raw = self.storage.get_item(self.key)
        except UnreadableValue as e:
            self._bookings = []
            self._last_seen = _UNREADABLE
            self._report(IntegrityError(f"Stored bookings are not valid text: {e}", key=self.key))
            return []
        except StorageError as e:
            self._bookings = []
            self._report(SyncError(f"Cannot read stored bookings: {e}"))
            return []

        self._last_seen = raw
        if raw is None:
            self._log.debug("bookings_initialized_empty")
            self._bookings = []
            return []

        try:
            bookings = decode_collection(raw, key=self.key)
        except IntegrityError as e:
            self._bookings = []
            self._report(e)
            return []

        self._bookings = _sorted_by_start(bookings)
        self._log.debug("bookings_loaded", count=len(self._bookings))
        return list(self._bookings)

    # ── mutations ────────────────────────────────────────────────────────

    def create(self, draft: BookingDraft) -> Booking:
        """
        Validate a draft and add it to the calendar

        Raises:
            ValidationError: if the draft is invalid (nothing changes)
            SyncError: if the collection cannot be written (nothing changes)
        """
        booking = draft.build(
            booking_id=self._next_id(),
            created_at=self.clock.now(),
            identity=self.identity,
            default_color=self.default_color,
        )
        updated = self._insert(list(self._bookings), booking)
        self.persist(updated)
        self.broadcast(self._bookings)
        self._log.info(
            "booking_created",
            booking_id=booking.id,
            start_date=booking.start_date.isoformat(),
            end_date=booking.end_date.isoformat(),
        )
        return booking

    def remove(self, booking_id: int) -> None:
        """
        Drop a booking; removing an unknown id is a no-op

        Raises:
            SyncError: if the collection cannot be written
        """
        updated = [b for b in self._bookings if b.id != booking_id]
        if len(updated) == len(self._bookings):
            self._log.debug("booking_remove_missing", booking_id=booking_id)
        self.persist(updated)
        self.broadcast(self._bookings)
        self._log.info("booking_removed", booking_id=booking_id)

    def rebook(self, booking_id: int, draft: BookingDraft) -> Booking:
        """
        Replace a booking by a new one built from ``draft``

        The old record is dropped and the new one gets a fresh id, in a
        single write.
        """
        booking = draft.build(
            booking_id=self._next_id(),
            created_at=self.clock.now(),
            identity=self.identity,
            default_color=self.default_color,
        )
        remaining = [b for b in self._bookings if b.id != booking_id]
        self.persist(self._insert(remaining, booking))
        self.broadcast(self._bookings)
        self._log.info("booking_rebooked", old_booking_id=booking_id, booking_id=booking.id)
        return booking

    def persist(self, collection: Sequence[Booking]) -> None:
        """
        Write the whole collection and adopt it in memory

        Raises:
            IntegrityError: if ``collection`` is not a sequence of bookings
            SyncError: if storage rejects the write; in-memory state is kept
        """
        bookings = _sorted_by_start(check_collection(collection))
        raw = encode_collection(bookings)
        try:
            self.storage.set_item(self.key, raw)
        except StorageError as e:
            self._log.error("bookings_persist_failed", error=str(e), count=len(bookings))
            raise SyncError(f"Could not save bookings: {e}") from e
        self._bookings = bookings
        self._last_seen = raw

    def broadcast(self, collection: Sequence[Booking]) -> None:
        """Tell the other contexts that the booking key changed"""
        event = StorageChanged(
            key=self.key,
            new_value=encode_collection(collection),
            origin=self.context_id,
        )
        self.bus.publish(event)

    # ── reconciliation ───────────────────────────────────────────────────

    def on_external_change(self, handler: ChangeHandler) -> Callable[[], None]:
        """
        Call ``handler`` with the reloaded collection after another
        context writes. Returns a callable that unregisters it.
        """
        self._handlers.append(handler)

        def unregister():
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unregister

    def sync(self) -> bool:
        """
        Reload if the durable value changed behind this context's back

        Covers writers that cannot reach this context's event bus, such as
        another process sharing the same storage. Returns True when a
        reload happened.
        """
        try:
            raw = self.storage.get_item(self.key)
        except UnreadableValue:
            raw = _UNREADABLE
        except StorageError as e:
            self._report(SyncError(f"Cannot check stored bookings: {e}"))
            return False
        if raw == self._last_seen:
            return False
        self._log.info("bookings_changed_elsewhere")
        self._reload_and_notify()
        return True

    def close(self) -> None:
        """Stop listening for other contexts"""
        self._unsubscribe()
        self._handlers.clear()

    # ── internals ────────────────────────────────────────────────────────

    def _handle_storage_changed(self, event: StorageChanged) -> None:
        # The payload is only a hint; durable storage is the ground truth
        self._log.debug("storage_change_observed", origin=event.origin)
        self._reload_and_notify()

    def _reload_and_notify(self) -> None:
        bookings = self.load()
        for handler in list(self._handlers):
            try:
                handler(list(bookings))
            except Exception as e:
                self._log.exception("external_change_handler_failed")
                self._report(e)

    def _next_id(self) -> int:
        candidate = int(self.clock.now().timestamp() * 1000)
        highest = max((b.id for b in self._bookings), default=0)
        return max(candidate, highest + 1)

    @staticmethod
    def _insert(bookings: List[Booking], booking: Booking) -> List[Booking]:
        keys = [b.start_date for b in bookings]
        bookings.insert(bisect.bisect_right(keys, booking.start_date), booking)
        return bookings

    def _report(self, error: Exception) -> None:
        self._log.warning("booking_store_error", error_type=type(error).__name__, error=str(error))
        if self._on_error is not None:
            self._on_error(error)

    def __repr__(self):
        return f"BookingStore(key={self.key!r}, context={self.context_id!r}, bookings={len(self._bookings)})"


def build_booking_store(
    identity: Identity | None = None,
    *,
    storage: KeyValueStorage | None = None,
    bus: StorageEventBus | None = None,
    on_error: ErrorReporter | None = None,
) -> BookingStore:
    """
    Build a store configured from ``settings.BOOKINGS``

    All stores built this way share the process-wide event bus.
    """
    config = getattr(settings, 'BOOKINGS', {})
    if storage is None:
        backend = import_string(
            config.get('STORAGE_BACKEND', 'shared.infrastructure.storage.DjangoStorage')
        )
        storage = backend(**config.get('STORAGE_OPTIONS', {}))
    store = BookingStore(
        storage,
        bus if bus is not None else storage_bus,
        key=config.get('STORAGE_KEY', DEFAULT_STORAGE_KEY),
        identity=identity,
        default_color=config.get('DEFAULT_OWNER_COLOR', DEFAULT_COLOR),
        on_error=on_error,
    )
    store.load()
    return store
