"""
Connectivity Module

Detects genuine internet connectivity: not just a WiFi or cellular link, but
verified reachability of well-known probe endpoints, so captive portals are
reported as "connected without internet".

Public API:
    - Connectivity: Monitor with polling, foreground and link-change checks
    - Status: Connectivity status enum
    - ProbeConfiguration / PollingConfiguration: Immutable settings
    - ConnectivityConfig: YAML + environment configuration
    - ResponseValidator: Contract for custom response validation
    - EventBus / LifecycleEvent: Host lifecycle signal
    - LinkStateFactory: Link-state backend selection

Usage:
    from connectivity import Connectivity

    connectivity = Connectivity()
    connectivity.when_connected(lambda conn: print(conn.status_description))
    connectivity.start_notifier()
"""

from connectivity.config import ConnectivityConfig
from connectivity.constants import (
    CheckTrigger,
    Framework,
    LinkState,
    ProbeMethod,
    ReductionPolicy,
    Status,
    ValidationMode,
)
from connectivity.controllers.connectivity_controller import Connectivity
from connectivity.event_bus import EventBus, LifecycleEvent
from connectivity.factory import LinkStateFactory, create_transport
from connectivity.interfaces.errors import ConfigurationError, ConnectivityError
from connectivity.interfaces.link_state_interface import LinkStateError, LinkStateInterface
from connectivity.interfaces.transport_interface import (
    ProbeResponse,
    TransportError,
    TransportInterface,
)
from connectivity.interfaces.validator_interface import ResponseValidator
from connectivity.models.probe import (
    PollingConfiguration,
    ProbeConfiguration,
    ProbeResult,
    ProbeURLResult,
)
from connectivity.state_machine import derive_status, is_connected_status

__all__ = [
    "CheckTrigger",
    "ConfigurationError",
    "Connectivity",
    "ConnectivityConfig",
    "ConnectivityError",
    "EventBus",
    "Framework",
    "LifecycleEvent",
    "LinkState",
    "LinkStateError",
    "LinkStateFactory",
    "LinkStateInterface",
    "PollingConfiguration",
    "ProbeConfiguration",
    "ProbeMethod",
    "ProbeResponse",
    "ProbeResult",
    "ProbeURLResult",
    "ReductionPolicy",
    "ResponseValidator",
    "Status",
    "TransportError",
    "TransportInterface",
    "ValidationMode",
    "create_transport",
    "derive_status",
    "is_connected_status",
]
