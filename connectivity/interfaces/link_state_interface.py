"""
Link-State Interface - Abstract Platform Layer

This defines the contract any link-state backend must follow.
The rest of the connectivity engine only ever sees LinkState values, so it
never branches on which backend (polling or event-driven) is active.

Why use an abstract interface?
1. Testability: Can swap the real backend with a mock for tests
2. Flexibility: Polling and D-Bus backends are interchangeable
3. Simulation: Can run on machines without NetworkManager
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict

from connectivity.constants import LinkState
from connectivity.interfaces.errors import ConnectivityError

LinkStateCallback = Callable[[LinkState], None]


class LinkStateError(ConnectivityError):
    """
    Exception raised when a link-state backend cannot be used.

    Examples:
    - System D-Bus not reachable
    - NetworkManager not running
    """


class LinkStateInterface(ABC):
    """
    Abstract base class for link-state sources.

    Subscriber bookkeeping is shared by every backend: implementations only
    need to answer query() and call _notify_subscribers() when the OS reports
    a change.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._subscribers: Dict[int, LinkStateCallback] = {}
        self._subscribers_lock = threading.Lock()
        self._next_handle = 1

    @abstractmethod
    def query(self) -> LinkState:
        """
        Get a snapshot of the current link state.

        Never raises: a failed query reports LinkState.UNKNOWN.

        Returns:
            Current LinkState
        """

    @abstractmethod
    def start(self) -> None:
        """
        Begin watching for link changes.

        Idempotent - calling start() twice has no extra effect.
        """

    @abstractmethod
    def stop(self) -> None:
        """
        Stop watching for link changes.

        Idempotent. Subscribers stay registered and are notified again
        after the next start().
        """

    def subscribe(self, callback: LinkStateCallback) -> int:
        """
        Register a callback for link changes.

        Args:
            callback: Called with the new LinkState whenever it changes

        Returns:
            Subscription handle for unsubscribe()
        """
        with self._subscribers_lock:
            handle = self._next_handle
            self._next_handle += 1
            self._subscribers[handle] = callback
        self.logger.debug(f"Link-state subscriber registered (handle: {handle})")
        return handle

    def unsubscribe(self, handle: int) -> None:
        """Remove a subscription. Unknown handles are ignored."""
        with self._subscribers_lock:
            self._subscribers.pop(handle, None)

    def cleanup(self) -> None:
        """Stop watching and drop all subscribers"""
        self.stop()
        with self._subscribers_lock:
            self._subscribers.clear()

    def _notify_subscribers(self, link_state: LinkState) -> None:
        """Push a link change to every subscriber"""
        with self._subscribers_lock:
            callbacks = list(self._subscribers.values())

        for callback in callbacks:
            try:
                callback(link_state)
            except Exception as e:
                self.logger.error(f"Error in link-state callback: {e}")
