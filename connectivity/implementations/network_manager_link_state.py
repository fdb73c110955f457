"""
NetworkManager Link-State Implementation

Event-driven backend: listens to NetworkManager on the system D-Bus and
pushes a notification as soon as the primary connection changes (link
up/down, WiFi <-> cellular handoff). No polling.

dbus-next is asyncio based, so the backend owns a private event loop running
on a daemon thread. query() answers from a cached state that the D-Bus
signals keep current.
"""

import asyncio
import threading
from typing import Optional

from dbus_next.aio import MessageBus
from dbus_next.constants import BusType

from connectivity.constants import (
    DBUS_PROPERTIES_INTERFACE,
    DEFAULT_NM_CONNECT_TIMEOUT,
    NM_BUS_NAME,
    NM_INTERFACE,
    NM_OBJECT_PATH,
    LinkState,
)
from connectivity.interfaces.link_state_interface import LinkStateError, LinkStateInterface
from connectivity.utils.interface_utils import link_state_from_network_manager


class NetworkManagerLinkState(LinkStateInterface):
    """
    Link-state source backed by NetworkManager D-Bus signals.

    Connects in the constructor so the factory can fall back to polling
    when NetworkManager is not there.

    Raises:
        LinkStateError: If the system bus or NetworkManager is unavailable
    """

    def __init__(self, connect_timeout: float = DEFAULT_NM_CONNECT_TIMEOUT):
        super().__init__()
        self.connect_timeout = connect_timeout

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._bus = None
        self._nm = None
        self._properties = None

        self._state = LinkState.UNKNOWN
        self._watching = False

        self._connect()
        self.logger.info(
            f"NetworkManager link-state backend initialized (initial: {self._state.value})",
        )

    # =========================================================================
    # LINK STATE INTERFACE
    # =========================================================================

    def query(self) -> LinkState:
        if self._bus is None:
            return LinkState.UNKNOWN
        return self._state

    def start(self) -> None:
        if self._bus is None:
            self._connect()
        self._watching = True

    def stop(self) -> None:
        self._watching = False

    def cleanup(self) -> None:
        super().cleanup()
        self._disconnect()

    # =========================================================================
    # EVENT LOOP & D-BUS
    # =========================================================================

    def _connect(self) -> None:
        """Start the private loop and subscribe to NetworkManager"""
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._run_loop,
            daemon=True,
            name="NetworkManagerLoop",
        )
        self._loop_thread.start()

        future = asyncio.run_coroutine_threadsafe(self._subscribe(), self._loop)
        try:
            future.result(timeout=self.connect_timeout)
        except Exception as e:
            future.cancel()
            self._disconnect()
            raise LinkStateError(f"NetworkManager not available: {e}") from e

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _subscribe(self) -> None:
        bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        introspection = await bus.introspect(NM_BUS_NAME, NM_OBJECT_PATH)
        proxy = bus.get_proxy_object(NM_BUS_NAME, NM_OBJECT_PATH, introspection)

        self._nm = proxy.get_interface(NM_INTERFACE)
        self._properties = proxy.get_interface(DBUS_PROPERTIES_INTERFACE)
        self._bus = bus

        self._state = await self._read_link_state()

        self._nm.on_state_changed(self._on_state_changed)
        self._properties.on_properties_changed(self._on_properties_changed)

    def _disconnect(self) -> None:
        """Close the bus and stop the private loop"""
        loop, thread = self._loop, self._loop_thread
        self._loop = None
        self._loop_thread = None

        if loop is None:
            return

        if self._bus is not None:
            loop.call_soon_threadsafe(self._bus.disconnect)
            self._bus = None
        loop.call_soon_threadsafe(loop.stop)

        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        if not loop.is_running():
            loop.close()

    async def _read_link_state(self) -> LinkState:
        try:
            state = await self._nm.get_state()
            connection_type = await self._nm.get_primary_connection_type()
        except Exception as e:
            self.logger.warning(f"NetworkManager query failed: {e}")
            return LinkState.UNKNOWN

        return link_state_from_network_manager(state, connection_type)

    # Signal handlers run on the private loop thread

    def _on_state_changed(self, state) -> None:
        asyncio.ensure_future(self._refresh())

    def _on_properties_changed(self, interface_name, changed_properties, invalidated_properties) -> None:
        if interface_name != NM_INTERFACE:
            return
        if "State" in changed_properties or "PrimaryConnectionType" in changed_properties:
            asyncio.ensure_future(self._refresh())

    async def _refresh(self) -> None:
        link_state = await self._read_link_state()
        if link_state == self._state:
            return

        previous = self._state
        self._state = link_state
        self.logger.info(f"Link state changed: {previous.value} -> {link_state.value}")

        if self._watching:
            self._notify_subscribers(link_state)

    def __repr__(self) -> str:
        return f"NetworkManagerLinkState(connected={self._bus is not None})"
