"""
Requests Transport Implementation

HTTP transport for probes, built on the requests library.
"""

import logging

import requests

from connectivity.constants import PROBE_HEADERS, ProbeMethod
from connectivity.interfaces.transport_interface import (
    ProbeResponse,
    TransportError,
    TransportInterface,
)


class RequestsTransport(TransportInterface):
    """
    Real HTTP transport.

    Each fetch() is an independent request (no shared session), so probes
    on different threads never contend for a connection pool. Redirects are
    followed: a captive portal redirect ends on the portal's login page,
    which then fails validation.
    """

    def __init__(self, headers: dict = None, verify_tls: bool = True):
        """
        Initialize transport.

        Args:
            headers: Extra request headers (merged over the no-cache defaults)
            verify_tls: Verify HTTPS certificates. Portals intercepting HTTPS
                present invalid certificates, which then count as failures.
        """
        self.logger = logging.getLogger(__name__)
        self.headers = {**PROBE_HEADERS, **(headers or {})}
        self.verify_tls = verify_tls

    def fetch(
        self,
        url: str,
        timeout: float,
        method: ProbeMethod = ProbeMethod.GET,
    ) -> ProbeResponse:
        try:
            response = requests.request(
                method.value,
                url,
                headers=self.headers,
                timeout=timeout,
                allow_redirects=True,
                verify=self.verify_tls,
            )
        except requests.Timeout as e:
            raise TransportError(f"Request timed out after {timeout}s", url=url) from e
        except requests.RequestException as e:
            raise TransportError(f"Request failed: {e}", url=url) from e

        return ProbeResponse(
            url=url,
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content or b"",
            final_url=response.url,
        )

    def close(self) -> None:
        """Nothing to release - requests are not pooled"""

    def __repr__(self) -> str:
        return f"RequestsTransport(verify_tls={self.verify_tls})"
