"""
Controllers Package

The Connectivity aggregate and the probe executor it drives.
"""

from connectivity.controllers.connectivity_controller import Connectivity
from connectivity.controllers.probe_executor import ProbeExecutor, reduce_results

# Public API (sorted alphabetically)
__all__ = [
    "Connectivity",
    "ProbeExecutor",
    "reduce_results",
]
