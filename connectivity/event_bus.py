"""
Event Bus

Minimal publish/subscribe channel for host lifecycle events.

The host application publishes DID_BECOME_ACTIVE when it comes back to the
foreground; a started Connectivity instance subscribed to the bus reacts
with an out-of-band check. Duplicate events are harmless.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List


class LifecycleEvent(Enum):
    DID_BECOME_ACTIVE = "did_become_active"


class EventBus:
    """
    Synchronous, thread-safe event bus.

    publish() runs subscribers on the publishing thread, in subscription
    order. A failing subscriber is logged and does not stop the others.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.subscribers: Dict[LifecycleEvent, List[Callable]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: LifecycleEvent, callback: Callable[[Any], None]) -> None:
        with self._lock:
            self.subscribers.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Subscribed to {event_type.value}")

    def unsubscribe(self, event_type: LifecycleEvent, callback: Callable[[Any], None]) -> None:
        """Remove a subscription. Unknown callbacks are ignored."""
        with self._lock:
            callbacks = self.subscribers.get(event_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def publish(self, event_type: LifecycleEvent, data: Any = None) -> int:
        """
        Deliver an event to its subscribers.

        Returns:
            Number of subscribers invoked
        """
        with self._lock:
            callbacks = list(self.subscribers.get(event_type, []))

        self.logger.debug(f"Publishing {event_type.value} to {len(callbacks)} subscriber(s)")

        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                self.logger.error(f"Error in {event_type.value} subscriber: {e}")

        return len(callbacks)

    def subscriber_count(self, event_type: LifecycleEvent) -> int:
        with self._lock:
            return len(self.subscribers.get(event_type, []))
