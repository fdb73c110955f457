"""
Connectivity Constants

Centralized enums and defaults for the connectivity module.
Following the same pattern as hardware/constants.py: values that can be
tuned per deployment come from config.settings, never hard-coded here.
"""

from enum import Enum

from config.settings import (
    CHECK_ON_FOREGROUND,
    EXPECTED_RESPONSE,
    LINK_FRAMEWORK,
    LINK_POLL_INTERVAL,
    NETWORK_MANAGER_CONNECT_TIMEOUT,
    POLL_WHILE_OFFLINE_ONLY,
    POLLING_ENABLED,
    POLLING_INTERVAL,
    PROBE_METHOD,
    PROBE_TIMEOUT,
    PROBE_URLS,
    PROBE_USER_AGENT,
    REDUCTION_POLICY,
    SUCCESS_THRESHOLD,
    VALIDATION_MODE,
)

# =============================================================================
# STATUS
# =============================================================================


class Status(Enum):
    """Externally visible connectivity status"""

    DETERMINING = "determining"
    NOT_CONNECTED = "not_connected"
    CONNECTED_VIA_WIFI = "connected_via_wifi"
    CONNECTED_VIA_WIFI_WITHOUT_INTERNET = "connected_via_wifi_without_internet"
    CONNECTED_VIA_CELLULAR = "connected_via_cellular"
    CONNECTED_VIA_CELLULAR_WITHOUT_INTERNET = "connected_via_cellular_without_internet"


STATUS_DESCRIPTIONS = {
    Status.DETERMINING: "Determining connectivity",
    Status.NOT_CONNECTED: "No connection",
    Status.CONNECTED_VIA_WIFI: "Connected via WiFi",
    Status.CONNECTED_VIA_WIFI_WITHOUT_INTERNET: "Connected via WiFi (without Internet access)",
    Status.CONNECTED_VIA_CELLULAR: "Connected via cellular",
    Status.CONNECTED_VIA_CELLULAR_WITHOUT_INTERNET: (
        "Connected via cellular (without Internet access)"
    ),
}

# Statuses with verified internet access
CONNECTED_STATUSES = frozenset(
    {
        Status.CONNECTED_VIA_WIFI,
        Status.CONNECTED_VIA_CELLULAR,
    },
)


class LinkState(Enum):
    """Interface-level state, independent of internet reachability"""

    NONE = "none"
    WIFI = "wifi"  # Any non-cellular link (wireless or wired)
    CELLULAR = "cellular"
    UNKNOWN = "unknown"  # Query failed or backend has no answer yet


# =============================================================================
# PROBE CONFIGURATION
# =============================================================================


class ValidationMode(Enum):
    """How a probe response body is compared to the expected response"""

    CONTAINS = "contains"
    EQUALS = "equals"
    MATCHES_REGEX = "matches_regex"
    CUSTOM = "custom"


class ReductionPolicy(Enum):
    """How per-URL probe results are combined into one verdict"""

    ALL = "all"  # Every URL must validate
    ANY = "any"  # One validating URL is enough
    THRESHOLD = "threshold"  # At least SUCCESS_THRESHOLD percent must validate


class ProbeMethod(Enum):
    """HTTP method used for probes"""

    GET = "GET"
    HEAD = "HEAD"


DEFAULT_PROBE_URLS = tuple(PROBE_URLS)
DEFAULT_EXPECTED_RESPONSE = EXPECTED_RESPONSE
DEFAULT_VALIDATION_MODE = ValidationMode(VALIDATION_MODE)
DEFAULT_PROBE_TIMEOUT = PROBE_TIMEOUT
DEFAULT_PROBE_METHOD = ProbeMethod(PROBE_METHOD.upper())
DEFAULT_REDUCTION_POLICY = ReductionPolicy(REDUCTION_POLICY)
DEFAULT_SUCCESS_THRESHOLD = SUCCESS_THRESHOLD

# Probe threads per check (one per URL, capped)
MAX_PROBE_WORKERS = 8

# Headers sent with every probe request
PROBE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "User-Agent": PROBE_USER_AGENT,
}

# =============================================================================
# POLLING CONFIGURATION
# =============================================================================

DEFAULT_POLLING_ENABLED = POLLING_ENABLED
DEFAULT_POLLING_INTERVAL = POLLING_INTERVAL
DEFAULT_POLL_WHILE_OFFLINE_ONLY = POLL_WHILE_OFFLINE_ONLY
DEFAULT_CHECK_ON_FOREGROUND = CHECK_ON_FOREGROUND

# How long stop_notifier() waits for the notifier thread (seconds)
NOTIFIER_JOIN_TIMEOUT = 5.0


class CheckTrigger(Enum):
    """What caused a connectivity check"""

    INITIAL = "initial"
    POLL = "poll"
    FOREGROUND = "foreground"
    LINK_CHANGE = "link_change"
    MANUAL = "manual"


# Observer lists, invoked in this order after each significant transition
CALLBACK_ON_CHANGE = "on_change"
CALLBACK_ON_CONNECTED = "on_connected"
CALLBACK_ON_DISCONNECTED = "on_disconnected"
CALLBACK_NAMES = (CALLBACK_ON_CHANGE, CALLBACK_ON_CONNECTED, CALLBACK_ON_DISCONNECTED)

# =============================================================================
# LINK STATE BACKENDS
# =============================================================================


class Framework(Enum):
    """Link-state backend selection"""

    POLLING = "polling"  # psutil interface sampling (legacy)
    NETWORK_MANAGER = "network_manager"  # NetworkManager D-Bus signals


DEFAULT_FRAMEWORK = Framework(LINK_FRAMEWORK)
DEFAULT_LINK_POLL_INTERVAL = LINK_POLL_INTERVAL
DEFAULT_NM_CONNECT_TIMEOUT = NETWORK_MANAGER_CONNECT_TIMEOUT

# Interface name prefixes (Linux naming, classic and predictable)
CELLULAR_INTERFACE_PREFIXES = ("wwan", "ppp", "rmnet", "ccmni", "usb", "cdc-wdm")
VIRTUAL_INTERFACE_PREFIXES = (
    "lo",
    "docker",
    "br-",
    "veth",
    "virbr",
    "vmnet",
    "vboxnet",
    "tun",
    "tap",
    "wg",
    "tailscale",
    "zt",
)

# NetworkManager D-Bus API
NM_BUS_NAME = "org.freedesktop.NetworkManager"
NM_OBJECT_PATH = "/org/freedesktop/NetworkManager"
NM_INTERFACE = "org.freedesktop.NetworkManager"
DBUS_PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

# NMState values (see NetworkManager's nm-dbus-interface.h)
NM_STATE_UNKNOWN = 0
NM_STATE_CONNECTED_LOCAL = 50  # Link up, no default route yet

# NetworkManager connection types reported as cellular
NM_CELLULAR_CONNECTION_TYPES = ("gsm", "cdma")

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s | %(name)s"
LOG_BACKUP_COUNT = 7
