"""
Connectivity Utilities

Pure helpers shared by the link-state backends.
"""

from connectivity.utils.interface_utils import (
    classify_interfaces,
    is_cellular_interface,
    is_routable_address,
    is_virtual_interface,
    link_state_from_network_manager,
)

__all__ = [
    "classify_interfaces",
    "is_cellular_interface",
    "is_routable_address",
    "is_virtual_interface",
    "link_state_from_network_manager",
]
