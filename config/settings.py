"""
Central Configuration File

ALL configuration values live here. This is the single source of truth.

Guidelines:
- Every value can be overridden from the environment (or a .env file)
- Import these settings in modules: from config.settings import PROBE_TIMEOUT
- Per-deployment overrides can also live in the YAML file at CONFIG_FILE
"""

import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes", "on")."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list) -> list:
    """Read a comma-separated list from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# =============================================================================
# PROBE CONFIGURATION
# =============================================================================

# Probe URLs - every URL is fetched on each check.
# captive.apple.com is the well-known captive portal detection endpoint;
# it answers a tiny HTML page containing "Success" when nothing intercepts it.
PROBE_URLS = _env_list(
    "CONNECTIVITY_PROBE_URLS",
    [
        "https://www.apple.com/library/test/success.html",
        "https://captive.apple.com/hotspot-detect.html",
    ],
)

# Response validation
EXPECTED_RESPONSE = os.getenv("CONNECTIVITY_EXPECTED_RESPONSE", "Success")
VALIDATION_MODE = os.getenv("CONNECTIVITY_VALIDATION_MODE", "contains")

# Per-request timeout (seconds)
PROBE_TIMEOUT = float(os.getenv("CONNECTIVITY_REQUEST_TIMEOUT", "5.0"))

# HTTP method used for probes (GET or HEAD)
PROBE_METHOD = os.getenv("CONNECTIVITY_PROBE_METHOD", "GET")

# How probe results are combined: all, any or threshold
REDUCTION_POLICY = os.getenv("CONNECTIVITY_REDUCTION_POLICY", "all")
SUCCESS_THRESHOLD = float(os.getenv("CONNECTIVITY_SUCCESS_THRESHOLD", "50.0"))  # percent

# Sent with every probe so intermediaries don't answer from cache
PROBE_USER_AGENT = os.getenv("CONNECTIVITY_USER_AGENT", "connectivity-monitor/1.0")

# =============================================================================
# POLLING CONFIGURATION
# =============================================================================

POLLING_ENABLED = _env_bool("CONNECTIVITY_POLLING_ENABLED", False)
POLLING_INTERVAL = float(os.getenv("CONNECTIVITY_POLLING_INTERVAL", "10.0"))  # seconds
POLL_WHILE_OFFLINE_ONLY = _env_bool("CONNECTIVITY_POLL_WHILE_OFFLINE_ONLY", True)
CHECK_ON_FOREGROUND = _env_bool("CONNECTIVITY_CHECK_ON_FOREGROUND", True)

# =============================================================================
# LINK STATE CONFIGURATION
# =============================================================================

# Link-state backend: "network_manager" (D-Bus events) or "polling" (psutil)
LINK_FRAMEWORK = os.getenv("CONNECTIVITY_FRAMEWORK", "network_manager")

# How often the polling backend samples network interfaces (seconds)
LINK_POLL_INTERVAL = float(os.getenv("CONNECTIVITY_LINK_POLL_INTERVAL", "2.0"))

# How long to wait for the system bus before falling back (seconds)
NETWORK_MANAGER_CONNECT_TIMEOUT = float(
    os.getenv("CONNECTIVITY_NM_CONNECT_TIMEOUT", "3.0"),
)

# =============================================================================
# FILES & LOGGING
# =============================================================================

# Optional YAML overrides (see connectivity/config.py)
CONFIG_FILE = os.getenv("CONNECTIVITY_CONFIG_FILE", "config/connectivity.yaml")

LOG_FILE = os.getenv("CONNECTIVITY_LOG_FILE", "/var/log/connectivity/monitor.log")
LOG_LEVEL = os.getenv("CONNECTIVITY_LOG_LEVEL", "INFO")
