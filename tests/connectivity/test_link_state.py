"""
Link-State Backend Tests

Tests for the link-state sources:
- Subscriber bookkeeping (shared base class, via the mock)
- psutil polling backend (psutil patched)
- NetworkManager backend (D-Bus replaced with an in-process fake)

To run these tests:
    pytest tests/connectivity/test_link_state.py -v
"""

import socket
from types import SimpleNamespace

import pytest

from connectivity.constants import NM_INTERFACE, LinkState
from connectivity.implementations import network_manager_link_state, polling_link_state
from connectivity.implementations.mock_link_state import MockLinkState
from connectivity.implementations.network_manager_link_state import NetworkManagerLinkState
from connectivity.implementations.polling_link_state import PollingLinkState
from connectivity.interfaces.link_state_interface import LinkStateError

# =============================================================================
# SUBSCRIBERS (MOCK BACKEND)
# =============================================================================


@pytest.mark.unit
class TestMockLinkState:
    """Test subscriber handling through the mock backend"""

    def test_query(self, mock_link):
        assert mock_link.query() == LinkState.WIFI
        mock_link.set_link_state(LinkState.CELLULAR)
        assert mock_link.query() == LinkState.CELLULAR

    def test_subscribers_notified_while_started(self, mock_link, callback_tracker):
        mock_link.subscribe(callback_tracker.track)
        mock_link.start()

        mock_link.set_link_state(LinkState.NONE)

        assert callback_tracker.get_last_call()["args"] == (LinkState.NONE,)

    def test_no_notification_while_stopped(self, mock_link, callback_tracker):
        mock_link.subscribe(callback_tracker.track)

        mock_link.set_link_state(LinkState.NONE)

        assert not callback_tracker.was_called()

    def test_unsubscribe(self, mock_link, callback_tracker):
        handle = mock_link.subscribe(callback_tracker.track)
        mock_link.start()
        mock_link.unsubscribe(handle)

        mock_link.set_link_state(LinkState.CELLULAR)

        assert not callback_tracker.was_called()
        assert mock_link.get_subscriber_count() == 0

    def test_failing_subscriber_does_not_block_others(self, mock_link, callback_tracker):
        def broken(link_state):
            raise RuntimeError("subscriber bug")

        mock_link.subscribe(broken)
        mock_link.subscribe(callback_tracker.track)
        mock_link.start()

        mock_link.set_link_state(LinkState.CELLULAR)

        assert callback_tracker.get_call_count() == 1

    def test_query_failure_reports_unknown(self, mock_link):
        mock_link.simulate_query_failure()
        assert mock_link.query() == LinkState.UNKNOWN

    def test_cleanup_drops_subscribers(self):
        link = MockLinkState()
        link.subscribe(lambda state: None)
        link.start()

        link.cleanup()

        assert not link.is_started
        assert link.get_subscriber_count() == 0


# =============================================================================
# POLLING BACKEND
# =============================================================================


class FakeInterfaces:
    """Stands in for psutil.net_if_stats / net_if_addrs"""

    def __init__(self):
        self.up = {}

    def set_up(self, *names):
        self.up = {name: "10.0.0.%d" % (index + 2) for index, name in enumerate(names)}

    def net_if_stats(self):
        stats = {"lo": SimpleNamespace(isup=True)}
        stats.update({name: SimpleNamespace(isup=True) for name in self.up})
        stats["eth1"] = SimpleNamespace(isup=False)
        return stats

    def net_if_addrs(self):
        addrs = {"lo": [SimpleNamespace(family=socket.AF_INET, address="127.0.0.1")]}
        for name, address in self.up.items():
            addrs[name] = [SimpleNamespace(family=socket.AF_INET, address=address)]
        addrs["eth1"] = [SimpleNamespace(family=socket.AF_INET, address="10.9.9.9")]
        return addrs


@pytest.fixture
def fake_interfaces(monkeypatch):
    interfaces = FakeInterfaces()
    monkeypatch.setattr(polling_link_state.psutil, "net_if_stats", interfaces.net_if_stats)
    monkeypatch.setattr(polling_link_state.psutil, "net_if_addrs", interfaces.net_if_addrs)
    return interfaces


@pytest.mark.unit
class TestPollingLinkState:
    """Test psutil-based link detection"""

    def test_wifi(self, fake_interfaces):
        fake_interfaces.set_up("wlan0")
        assert PollingLinkState().query() == LinkState.WIFI

    def test_cellular(self, fake_interfaces):
        fake_interfaces.set_up("wwan0")
        assert PollingLinkState().query() == LinkState.CELLULAR

    def test_only_loopback_and_down_interfaces(self, fake_interfaces):
        """lo is virtual and eth1 is down: no link"""
        assert PollingLinkState().query() == LinkState.NONE

    def test_link_local_only_is_no_link(self, fake_interfaces, monkeypatch):
        monkeypatch.setattr(
            polling_link_state.psutil,
            "net_if_addrs",
            lambda: {"wlan0": [SimpleNamespace(family=socket.AF_INET, address="169.254.3.4")]},
        )
        monkeypatch.setattr(
            polling_link_state.psutil,
            "net_if_stats",
            lambda: {"wlan0": SimpleNamespace(isup=True)},
        )
        assert PollingLinkState().query() == LinkState.NONE

    def test_psutil_failure_reports_unknown(self, monkeypatch):
        def broken():
            raise OSError("netlink unavailable")

        monkeypatch.setattr(polling_link_state.psutil, "net_if_stats", broken)
        assert PollingLinkState().query() == LinkState.UNKNOWN

    def test_change_pushed_to_subscribers(self, fake_interfaces, callback_tracker):
        fake_interfaces.set_up("wlan0")
        link = PollingLinkState(poll_interval=0.05)
        link.subscribe(callback_tracker.track)
        link.start()
        try:
            fake_interfaces.set_up("wwan0")
            assert callback_tracker.wait_for_calls(1)
        finally:
            link.cleanup()

        assert callback_tracker.get_last_call()["args"] == (LinkState.CELLULAR,)

    def test_stop_ends_polling(self, fake_interfaces):
        link = PollingLinkState(poll_interval=0.05)
        link.start()
        thread = link._thread
        link.start()  # Idempotent
        assert link._thread is thread

        link.stop()

        assert not thread.is_alive()


# =============================================================================
# NETWORKMANAGER BACKEND
# =============================================================================


class FakeNetworkManager:
    """org.freedesktop.NetworkManager proxy interface"""

    def __init__(self):
        self.state = 70
        self.connection_type = "802-11-wireless"
        self.state_handlers = []

    async def get_state(self):
        return self.state

    async def get_primary_connection_type(self):
        return self.connection_type

    def on_state_changed(self, handler):
        self.state_handlers.append(handler)


class FakeProperties:
    """org.freedesktop.DBus.Properties proxy interface"""

    def __init__(self):
        self.handlers = []

    def on_properties_changed(self, handler):
        self.handlers.append(handler)


class FakeBus:
    def __init__(self):
        self.nm = FakeNetworkManager()
        self.properties = FakeProperties()
        self.disconnected = False

    async def introspect(self, bus_name, path):
        return None

    def get_proxy_object(self, bus_name, path, introspection):
        bus = self

        class _Proxy:
            def get_interface(self, name):
                return bus.nm if name == NM_INTERFACE else bus.properties

        return _Proxy()

    def disconnect(self):
        self.disconnected = True


@pytest.fixture
def fake_bus(monkeypatch):
    bus = FakeBus()

    class _MessageBus:
        def __init__(self, bus_type=None):
            self.bus_type = bus_type

        async def connect(self):
            return bus

    monkeypatch.setattr(network_manager_link_state, "MessageBus", _MessageBus)
    return bus


@pytest.fixture
def nm_link(fake_bus):
    link = NetworkManagerLinkState(connect_timeout=1.0)
    yield link
    link.cleanup()


@pytest.mark.unit
class TestNetworkManagerLinkState:
    """Test the D-Bus backend against an in-process fake bus"""

    def test_initial_state(self, nm_link):
        assert nm_link.query() == LinkState.WIFI

    def test_state_signal_pushes_change(self, nm_link, fake_bus, callback_tracker):
        nm_link.subscribe(callback_tracker.track)
        nm_link.start()

        fake_bus.nm.connection_type = "gsm"
        nm_link._loop.call_soon_threadsafe(fake_bus.nm.state_handlers[0], 70)

        assert callback_tracker.wait_for_calls(1)
        assert callback_tracker.get_last_call()["args"] == (LinkState.CELLULAR,)
        assert nm_link.query() == LinkState.CELLULAR

    def test_properties_signal_pushes_change(self, nm_link, fake_bus, callback_tracker):
        nm_link.subscribe(callback_tracker.track)
        nm_link.start()

        fake_bus.nm.state = 20
        nm_link._loop.call_soon_threadsafe(
            fake_bus.properties.handlers[0],
            NM_INTERFACE,
            {"State": 20},
            [],
        )

        assert callback_tracker.wait_for_calls(1)
        assert callback_tracker.get_last_call()["args"] == (LinkState.NONE,)

    def test_no_push_when_not_watching(self, nm_link, fake_bus, callback_tracker):
        nm_link.subscribe(callback_tracker.track)

        fake_bus.nm.state = 20
        nm_link._loop.call_soon_threadsafe(fake_bus.nm.state_handlers[0], 20)

        assert not callback_tracker.wait_for_calls(1, timeout=0.3)
        assert nm_link.query() == LinkState.NONE

    def test_cleanup_disconnects(self, fake_bus):
        link = NetworkManagerLinkState(connect_timeout=1.0)
        link.cleanup()

        assert fake_bus.disconnected
        assert link.query() == LinkState.UNKNOWN

    def test_unavailable_bus_raises(self, monkeypatch):
        class _NoBus:
            def __init__(self, bus_type=None):
                pass

            async def connect(self):
                raise FileNotFoundError("/run/dbus/system_bus_socket")

        monkeypatch.setattr(network_manager_link_state, "MessageBus", _NoBus)

        with pytest.raises(LinkStateError):
            NetworkManagerLinkState(connect_timeout=1.0)
