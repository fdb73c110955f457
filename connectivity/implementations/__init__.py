"""
Connectivity Implementations Package

Exposes concrete implementations of the connectivity interfaces.
"""

from connectivity.implementations.mock_link_state import MockLinkState
from connectivity.implementations.mock_transport import MockTransport
from connectivity.implementations.network_manager_link_state import NetworkManagerLinkState
from connectivity.implementations.polling_link_state import PollingLinkState
from connectivity.implementations.requests_transport import RequestsTransport
from connectivity.implementations.string_validator import StringValidator, decode_body

# Public API (sorted alphabetically)
__all__ = [
    "MockLinkState",
    "MockTransport",
    "NetworkManagerLinkState",
    "PollingLinkState",
    "RequestsTransport",
    "StringValidator",
    "decode_body",
]
