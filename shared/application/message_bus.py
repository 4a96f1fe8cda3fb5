"""
Storage Event Bus

Same-process broadcast hub for StorageChanged events. Each execution
context subscribes under its own origin name; a published event reaches
every subscriber of the key except the context that published it.

Delivery is fire-and-forget: no acknowledgement, no ordering guarantee
between publishers, and a failing handler never affects the publisher or
the remaining handlers.
"""

from typing import Callable, Dict, List, Tuple
import logging

from shared.domain.events import StorageChanged

logger = logging.getLogger(__name__)

StorageHandler = Callable[[StorageChanged], None]


class StorageEventBus:
    """
    Storage event bus

    Subscriptions: many (origin, handler) pairs per key (1:N)
    """

    def __init__(self):
        self._subscriptions: Dict[str, List[Tuple[str, StorageHandler]]] = {}

    def subscribe(self, key: str, origin: str, handler: StorageHandler) -> Callable[[], None]:
        """
        Register a handler for changes of ``key`` made by other origins

        Returns a callable that removes the subscription again.
        """
        entry = (origin, handler)
        self._subscriptions.setdefault(key, []).append(entry)
        logger.debug(f"Subscribed {origin} to storage key {key}")

        def unsubscribe():
            entries = self._subscriptions.get(key, [])
            if entry in entries:
                entries.remove(entry)
                logger.debug(f"Unsubscribed {origin} from storage key {key}")

        return unsubscribe

    def publish(self, event: StorageChanged) -> int:
        """
        Deliver an event to every other origin subscribed to its key

        Returns the number of handlers that were called. Errors in
        handlers are logged but don't stop other handlers.
        """
        recipients = [
            (origin, handler)
            for origin, handler in list(self._subscriptions.get(event.key, []))
            if origin != event.origin
        ]

        if not recipients:
            logger.debug(f"No other contexts listening on {event.key}")
            return 0

        logger.info(
            f"Publishing storage change of {event.key} from {event.origin} "
            f"to {len(recipients)} context(s) (ID: {event.event_id})"
        )

        for origin, handler in recipients:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Error in storage handler of {origin} "
                    f"for key {event.key}: {e}",
                    exc_info=True
                )
        return len(recipients)

    def subscriber_count(self, key: str) -> int:
        return len(self._subscriptions.get(key, []))


# Process-wide bus shared by every store built from settings
storage_bus = StorageEventBus()
