"""
Interfaces Package

Abstract interfaces for connectivity collaborators.
"""

from connectivity.interfaces.errors import ConfigurationError, ConnectivityError
from connectivity.interfaces.link_state_interface import (
    LinkStateCallback,
    LinkStateError,
    LinkStateInterface,
)
from connectivity.interfaces.transport_interface import (
    ProbeResponse,
    TransportError,
    TransportInterface,
)
from connectivity.interfaces.validator_interface import ResponseValidator

__all__ = [
    "ConfigurationError",
    "ConnectivityError",
    "LinkStateCallback",
    "LinkStateError",
    "LinkStateInterface",
    "ProbeResponse",
    "ResponseValidator",
    "TransportError",
    "TransportInterface",
]
