"""
Mock Link-State Implementation

Simulated link-state source for testing without real network interfaces.
Similar to MockTransport: tests drive it directly.
"""

from connectivity.constants import LinkState
from connectivity.interfaces.link_state_interface import LinkStateInterface


class MockLinkState(LinkStateInterface):
    """
    Mock link-state source.

    Usage:
        link = MockLinkState(LinkState.WIFI)
        link.set_link_state(LinkState.CELLULAR)  # Pushes to subscribers
        link.simulate_query_failure(True)        # query() -> UNKNOWN
    """

    def __init__(self, initial_state: LinkState = LinkState.WIFI):
        """
        Initialize mock link source.

        Args:
            initial_state: Link state reported until set_link_state() is called
        """
        super().__init__()
        self._state = initial_state
        self._fail_queries = False

        # Track calls for testing
        self.query_count = 0
        self.is_started = False
        self.start_count = 0

        self.logger.info(f"Mock Link State initialized ({initial_state.value})")

    def query(self) -> LinkState:
        self.query_count += 1
        if self._fail_queries:
            self.logger.debug("[MOCK] Simulated link-state query failure")
            return LinkState.UNKNOWN
        return self._state

    def start(self) -> None:
        if not self.is_started:
            self.start_count += 1
        self.is_started = True

    def stop(self) -> None:
        self.is_started = False

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def set_link_state(self, link_state: LinkState, notify: bool = True) -> None:
        """
        Change the simulated link state.

        Args:
            link_state: New link state
            notify: Push the change to subscribers (only while started,
                like a real backend)
        """
        changed = link_state != self._state
        self._state = link_state
        self.logger.debug(f"[MOCK] Link state set to {link_state.value}")

        if changed and notify and self.is_started:
            self._notify_subscribers(link_state)

    def simulate_query_failure(self, enabled: bool = True) -> None:
        """Make query() report UNKNOWN, as a real backend does on failure"""
        self._fail_queries = enabled

    def get_subscriber_count(self) -> int:
        """Number of registered subscribers"""
        with self._subscribers_lock:
            return len(self._subscribers)
