"""
Models Package

Configuration and result data structures.
"""

from connectivity.models.probe import (
    PollingConfiguration,
    ProbeConfiguration,
    ProbeResult,
    ProbeURLResult,
)

__all__ = [
    "PollingConfiguration",
    "ProbeConfiguration",
    "ProbeResult",
    "ProbeURLResult",
]
