"""
Response Validator Interface

Decides whether a fetched probe response is proof of real internet access.

A captive portal answers probe requests with its own login page, so a
successful HTTP exchange is not enough - the body has to look like the
response the probe endpoint really serves. Built-in string strategies live in
implementations/string_validator.py; callers can plug in their own by
subclassing ResponseValidator.
"""

from abc import ABC, abstractmethod
from typing import Optional

from connectivity.interfaces.transport_interface import ProbeResponse


class ResponseValidator(ABC):
    """
    Abstract base class for probe response validators.

    Implementations must be side-effect free and thread-safe: the probe
    executor calls is_response_valid() concurrently, once per probe URL.
    """

    @abstractmethod
    def is_response_valid(
        self,
        url: str,
        response: Optional[ProbeResponse],
        body: Optional[bytes],
    ) -> bool:
        """
        Validate a probe response.

        Args:
            url: Probe URL that was fetched
            response: Response metadata (status code, headers), may be None
            body: Raw response body, may be None or empty

        Returns:
            True if the response proves internet access

        Example:
            class HostValidator(ResponseValidator):
                def is_response_valid(self, url, response, body):
                    return urlparse(url).hostname == "example.com"
        """
