"""
Test Configuration and Fixtures

Shared fixtures for the connectivity tests: mock transport and link source,
ready-made configurations, and a thread-safe callback tracker for observers
that fire on background threads.

To use pytest:
    pip install -e ".[test]"
    pytest tests/connectivity/
"""

import threading

import pytest

from connectivity.constants import LinkState
from connectivity.controllers.connectivity_controller import Connectivity
from connectivity.implementations.mock_link_state import MockLinkState
from connectivity.implementations.mock_transport import MockTransport
from connectivity.models.probe import PollingConfiguration, ProbeConfiguration

# Probe hosts used throughout the tests (never resolved: MockTransport only)
PRIMARY_HOST = "www.apple.com"
CAPTIVE_HOST = "captive.apple.com"
PROBE_URLS = (
    f"https://{PRIMARY_HOST}/library/test/success.html",
    f"https://{CAPTIVE_HOST}/hotspot-detect.html",
)

SUCCESS_BODY = "<HTML><HEAD><TITLE>Success</TITLE></HEAD><BODY>Success</BODY></HTML>"
PORTAL_BODY = "<html><body><h1>Welcome!</h1><p>Please log in to use the WiFi.</p></body></html>"


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def mock_transport():
    """
    Provide a fresh, unstubbed MockTransport.

    Usage in test:
        def test_something(mock_transport):
            mock_transport.stub_host("captive.apple.com", "Success")
    """
    transport = MockTransport()
    yield transport
    transport.close()


@pytest.fixture
def probe_stubs(mock_transport):
    """
    Provide helpers that switch what the probe hosts answer.

    Usage:
        def test_portal(probe_stubs):
            probe_stubs.all_success()
            probe_stubs.all_portal()
            probe_stubs.urls  # The two probe URLs used by probe_config
    """
    class ProbeStubs:
        primary_host = PRIMARY_HOST
        captive_host = CAPTIVE_HOST
        urls = PROBE_URLS
        success_body = SUCCESS_BODY
        portal_body = PORTAL_BODY

        def all_success(self):
            """Both probe hosts answer like the real endpoints"""
            mock_transport.stub_host(PRIMARY_HOST, SUCCESS_BODY)
            mock_transport.stub_host(CAPTIVE_HOST, SUCCESS_BODY)

        def all_portal(self):
            """Both probe hosts are intercepted by a captive portal"""
            mock_transport.stub_host(PRIMARY_HOST, PORTAL_BODY)
            mock_transport.stub_host(CAPTIVE_HOST, PORTAL_BODY)

    return ProbeStubs()


@pytest.fixture
def mock_link():
    """
    Provide a MockLinkState reporting WiFi.

    Usage:
        def test_link(mock_link):
            mock_link.set_link_state(LinkState.CELLULAR)
    """
    link = MockLinkState(LinkState.WIFI)
    yield link
    link.cleanup()


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def probe_config():
    """ProbeConfiguration for the two test hosts (contains "Success", ALL)"""
    return ProbeConfiguration(urls=PROBE_URLS, expected_response="Success", timeout=1.0)


@pytest.fixture
def no_polling():
    """Scheduling with polling and foreground checks off"""
    return PollingConfiguration(
        is_polling_enabled=False,
        polling_interval=0.1,
        poll_while_offline_only=False,
        check_on_foreground=False,
    )


@pytest.fixture
def fast_polling():
    """Scheduling with a 0.1s poll that keeps running while connected"""
    return PollingConfiguration(
        is_polling_enabled=True,
        polling_interval=0.1,
        poll_while_offline_only=False,
        check_on_foreground=False,
    )


# =============================================================================
# CONNECTIVITY FIXTURES
# =============================================================================

@pytest.fixture
def make_connectivity(mock_link, mock_transport, probe_config, no_polling):
    """
    Factory fixture building Connectivity instances wired to the mocks.

    Every instance is stopped and cleaned up after the test.

    Usage:
        def test_notifier(make_connectivity, fast_polling):
            connectivity = make_connectivity(polling_config=fast_polling)
    """
    created = []

    def _make(**kwargs):
        kwargs.setdefault("probe_config", probe_config)
        kwargs.setdefault("polling_config", no_polling)
        kwargs.setdefault("link_source", mock_link)
        kwargs.setdefault("transport", mock_transport)
        connectivity = Connectivity(**kwargs)
        created.append(connectivity)
        return connectivity

    yield _make

    for connectivity in created:
        connectivity.cleanup()


# =============================================================================
# HELPER FIXTURES
# =============================================================================

@pytest.fixture
def callback_tracker():
    """
    Provide a thread-safe helper for tracking callback calls.

    Observers fire on notifier threads, so tests wait for calls instead of
    sleeping.

    Usage:
        def test_callback(connectivity, callback_tracker):
            connectivity.when_changed(callback_tracker.track)
            connectivity.start_notifier()
            assert callback_tracker.wait_for_calls(1)
    """
    class CallbackTracker:
        def __init__(self):
            self.calls = []
            self._condition = threading.Condition()

        def track(self, *args, **kwargs):
            """Record a callback invocation (and the status at that moment)"""
            status = getattr(args[0], "status", None) if args else None
            with self._condition:
                self.calls.append({"args": args, "kwargs": kwargs, "status": status})
                self._condition.notify_all()

        def wait_for_calls(self, count: int = 1, timeout: float = 2.0) -> bool:
            """Block until at least count calls were recorded"""
            with self._condition:
                return self._condition.wait_for(lambda: len(self.calls) >= count, timeout)

        def was_called(self) -> bool:
            return len(self.calls) > 0

        def get_call_count(self) -> int:
            return len(self.calls)

        def get_last_call(self):
            return self.calls[-1] if self.calls else None

        @property
        def statuses(self) -> list:
            """Status seen by each call, in order"""
            return [call["status"] for call in self.calls]

        def reset(self):
            """Clear call history"""
            with self._condition:
                self.calls.clear()

    return CallbackTracker()


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """
    Configure pytest with custom markers.

    Markers let you categorize and selectively run tests:
        pytest -m unit          # Only unit tests
        pytest -m integration   # Only integration tests
        pytest -m "not slow"    # Skip slow tests
    """
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (may be slower)")
    config.addinivalue_line("markers", "slow: Slow tests (use sparingly)")
