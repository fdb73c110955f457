"""
Interface Utilities

Helpers for turning raw network interface data into a LinkState.
Pure functions - no psutil calls here, so they are trivial to test.
"""

import ipaddress
import socket
from typing import Iterable

from connectivity.constants import (
    CELLULAR_INTERFACE_PREFIXES,
    NM_CELLULAR_CONNECTION_TYPES,
    NM_STATE_CONNECTED_LOCAL,
    NM_STATE_UNKNOWN,
    VIRTUAL_INTERFACE_PREFIXES,
    LinkState,
)


def is_virtual_interface(name: str) -> bool:
    """Loopback, container, VM and VPN interfaces never count as a link"""
    return name.startswith(VIRTUAL_INTERFACE_PREFIXES)


def is_cellular_interface(name: str) -> bool:
    """Modem and tethering interfaces"""
    return name.startswith(CELLULAR_INTERFACE_PREFIXES)


def is_routable_address(family, address: str) -> bool:
    """
    Check whether an interface address can reach beyond the local link.

    Args:
        family: Address family (socket.AF_INET / socket.AF_INET6)
        address: Address string as reported by psutil

    Returns:
        False for loopback, link-local and unparseable addresses
    """
    if family not in (socket.AF_INET, socket.AF_INET6):
        return False

    # IPv6 link-local addresses carry a zone suffix: fe80::1%wlan0
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False

    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def classify_interfaces(active_interfaces: Iterable[str]) -> LinkState:
    """
    Reduce the set of usable interfaces to one LinkState.

    Non-cellular links win over cellular ones because the OS routes through
    them when both are up. Wired links report WIFI ("not cellular").

    Args:
        active_interfaces: Names of interfaces that are up with a routable address

    Returns:
        LinkState.WIFI, LinkState.CELLULAR or LinkState.NONE
    """
    names = [name for name in active_interfaces if not is_virtual_interface(name)]

    if any(not is_cellular_interface(name) for name in names):
        return LinkState.WIFI

    if names:
        return LinkState.CELLULAR

    return LinkState.NONE


def link_state_from_network_manager(state: int, connection_type: str) -> LinkState:
    """
    Map NetworkManager's global state and primary connection type.

    Args:
        state: NMState value
        connection_type: PrimaryConnectionType ("802-11-wireless", "gsm", ...)

    Returns:
        Normalized LinkState
    """
    if state == NM_STATE_UNKNOWN:
        return LinkState.UNKNOWN

    if state < NM_STATE_CONNECTED_LOCAL:
        return LinkState.NONE

    if connection_type in NM_CELLULAR_CONNECTION_TYPES:
        return LinkState.CELLULAR

    return LinkState.WIFI
