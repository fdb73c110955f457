"""
Mock Transport Implementation

Simulated HTTP transport for testing without network access.
Responses are stubbed per host, so a test can make the captive-portal
endpoint fail while another probe host succeeds.
"""

import logging
import threading
import time
from typing import Dict, List, Optional
from urllib.parse import urlparse

from connectivity.constants import ProbeMethod
from connectivity.interfaces.transport_interface import (
    ProbeResponse,
    TransportError,
    TransportInterface,
)


class MockTransport(TransportInterface):
    """
    Mock HTTP transport.

    Useful for:
    - Unit tests
    - Development without network access
    - Simulating captive portals and outages

    Unstubbed hosts fail like a refused connection.

    Usage:
        transport = MockTransport()
        transport.stub_host("captive.apple.com", "<HTML>Success</HTML>")
        transport.stub_failure("www.apple.com", "DNS lookup failed")
    """

    def __init__(self, delay: float = 0.0):
        """
        Initialize mock transport.

        Args:
            delay: Seconds each fetch blocks before answering (simulates latency)
        """
        self.logger = logging.getLogger(__name__)
        self.delay = delay

        self._stubs: Dict[str, dict] = {}
        self._lock = threading.Lock()

        # Track requests for testing
        self.request_history: List[dict] = []
        self.closed = False

        self.logger.info(f"Mock Transport initialized (delay: {delay})")

    # =========================================================================
    # STUBBING
    # =========================================================================

    def stub_host(
        self,
        host: str,
        body,
        status_code: int = 200,
        headers: Optional[dict] = None,
    ) -> None:
        """
        Answer every request to host with a fixed response.

        Args:
            host: Hostname to match (e.g. "captive.apple.com")
            body: Response body (str is UTF-8 encoded)
            status_code: HTTP status code
            headers: Response headers
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        with self._lock:
            self._stubs[host] = {
                "body": body,
                "status_code": status_code,
                "headers": headers or {"Content-Type": "text/html"},
                "error": None,
            }

    def stub_failure(self, host: str, error: str = "Connection refused") -> None:
        """Make every request to host fail at the network level"""
        with self._lock:
            self._stubs[host] = {"error": error}

    def remove_stub(self, host: str) -> None:
        """Remove the stub for host (requests will fail)"""
        with self._lock:
            self._stubs.pop(host, None)

    def remove_all_stubs(self) -> None:
        """Remove every stub"""
        with self._lock:
            self._stubs.clear()

    # =========================================================================
    # TRANSPORT INTERFACE
    # =========================================================================

    def fetch(
        self,
        url: str,
        timeout: float,
        method: ProbeMethod = ProbeMethod.GET,
    ) -> ProbeResponse:
        host = urlparse(url).hostname or ""

        with self._lock:
            stub = dict(self._stubs.get(host) or {})
            self.request_history.append(
                {
                    "url": url,
                    "host": host,
                    "method": method.value,
                    "timeout": timeout,
                    "timestamp": time.time(),
                },
            )

        if self.delay:
            if self.delay >= timeout:
                time.sleep(timeout)
                raise TransportError(f"[MOCK] Request timed out after {timeout}s", url=url)
            time.sleep(self.delay)

        if not stub:
            raise TransportError(f"[MOCK] No stub for host {host!r}", url=url)

        if stub["error"]:
            raise TransportError(f"[MOCK] {stub['error']}", url=url)

        body = b"" if method == ProbeMethod.HEAD else stub["body"]
        return ProbeResponse(
            url=url,
            status_code=stub["status_code"],
            headers=dict(stub["headers"]),
            body=body,
            final_url=url,
        )

    def close(self) -> None:
        self.closed = True

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def get_request_count(self, host: Optional[str] = None) -> int:
        """
        Count requests made, optionally for one host only.

        Args:
            host: Hostname filter, or None for all requests
        """
        with self._lock:
            if host is None:
                return len(self.request_history)
            return sum(1 for record in self.request_history if record["host"] == host)

    def clear_history(self) -> None:
        """Clear request history"""
        with self._lock:
            self.request_history.clear()
