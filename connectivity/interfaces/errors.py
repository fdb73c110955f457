"""
Connectivity Errors

Base exception shared by the whole connectivity module. Errors specific to
one collaborator (TransportError, LinkStateError) live beside its interface.
"""


class ConnectivityError(Exception):
    """Base class for all connectivity errors"""


class ConfigurationError(ConnectivityError, ValueError):
    """
    Exception raised for invalid configuration.

    Raised at configuration time, never during a check.

    Examples:
    - Empty probe URL list
    - Non-positive timeout or polling interval
    - Invalid regular expression
    - Changing configuration while the notifier is running
    """
