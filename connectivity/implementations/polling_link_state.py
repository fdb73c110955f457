"""
Polling Link-State Implementation

Legacy backend: samples network interfaces with psutil on a background
thread and pushes a notification whenever the derived LinkState changes.
Works anywhere psutil does, with no system service dependency.
"""

import threading
from typing import Optional

import psutil

from connectivity.constants import DEFAULT_LINK_POLL_INTERVAL, LinkState
from connectivity.interfaces.link_state_interface import LinkStateInterface
from connectivity.utils.interface_utils import (
    classify_interfaces,
    is_routable_address,
    is_virtual_interface,
)


class PollingLinkState(LinkStateInterface):
    """
    Link-state source backed by periodic psutil sampling.

    Usage:
        link = PollingLinkState(poll_interval=2.0)
        link.subscribe(lambda state: print(f"Link is now {state.value}"))
        link.start()
    """

    def __init__(self, poll_interval: float = DEFAULT_LINK_POLL_INTERVAL):
        """
        Initialize polling backend.

        Args:
            poll_interval: Seconds between interface samples
        """
        super().__init__()
        self.poll_interval = poll_interval

        self._last_state: Optional[LinkState] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.logger.info(f"Polling link-state backend initialized (interval: {poll_interval}s)")

    def query(self) -> LinkState:
        try:
            stats = psutil.net_if_stats()
            addresses = psutil.net_if_addrs()
        except Exception as e:
            self.logger.warning(f"Interface query failed: {e}")
            return LinkState.UNKNOWN

        active = []
        for name, stat in stats.items():
            if not stat.isup or is_virtual_interface(name):
                continue
            if any(is_routable_address(addr.family, addr.address) for addr in addresses.get(name, [])):
                active.append(name)

        return classify_interfaces(active)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        self._stop_event = threading.Event()
        self._last_state = self.query()
        self._thread = threading.Thread(
            target=self._poll_worker,
            args=(self._stop_event,),
            daemon=True,
            name="LinkStatePoller",
        )
        self._thread.start()
        self.logger.debug(f"Link-state polling started (initial: {self._last_state.value})")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.poll_interval + 1.0)
        self._thread = None

    def _poll_worker(self, stop_event: threading.Event) -> None:
        """Sample interfaces until stopped, notifying on changes"""
        while not stop_event.wait(self.poll_interval):
            link_state = self.query()
            if link_state == self._last_state:
                continue

            previous = self._last_state
            self._last_state = link_state
            self.logger.info(
                f"Link state changed: {previous.value if previous else 'none'} -> {link_state.value}",
            )
            self._notify_subscribers(link_state)

    def __repr__(self) -> str:
        return f"PollingLinkState(poll_interval={self.poll_interval})"
