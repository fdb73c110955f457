"""
HTTP Transport Interface

Abstract interface for fetching probe URLs.
Follows Dependency Inversion Principle - the probe executor depends on this
abstraction, not on a concrete HTTP library.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

from connectivity.constants import ProbeMethod
from connectivity.interfaces.errors import ConnectivityError


class TransportError(ConnectivityError):
    """
    Exception raised when a probe request fails at the network level.

    Examples:
    - Request timed out
    - DNS lookup failed
    - Connection refused or reset
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


@dataclass
class ProbeResponse:
    """
    Metadata and body of a fetched probe URL.

    Attributes:
        url: URL that was requested
        status_code: HTTP status code of the final response
        headers: Response headers
        body: Raw response body (empty for HEAD requests)
        final_url: URL after redirects (captive portals usually redirect)
    """

    url: str
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    final_url: Optional[str] = None

    @property
    def was_redirected(self) -> bool:
        """True if the request ended on a different URL"""
        return self.final_url is not None and self.final_url != self.url


class TransportInterface(ABC):
    """
    Abstract base class for HTTP transports.

    Implementations must support concurrent fetch() calls from several
    threads - one probe URL per thread.
    """

    @abstractmethod
    def fetch(
        self,
        url: str,
        timeout: float,
        method: ProbeMethod = ProbeMethod.GET,
    ) -> ProbeResponse:
        """
        Fetch a probe URL.

        Args:
            url: URL to request
            timeout: Request timeout in seconds
            method: HTTP method (GET or HEAD)

        Returns:
            ProbeResponse with status code, headers and body

        Raises:
            TransportError: On timeout, DNS failure, refused connection, etc.
                HTTP error status codes are NOT errors - they are returned
                and left to the validator.
        """

    @abstractmethod
    def close(self) -> None:
        """
        Release transport resources.

        Safe to call multiple times.
        """
