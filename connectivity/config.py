"""
Connectivity Configuration Handler

Manages the optional YAML configuration file for probe and polling settings.
File values override the defaults from config/settings.py (and therefore
from the environment).
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from config.settings import CONFIG_FILE
from connectivity.constants import (
    DEFAULT_CHECK_ON_FOREGROUND,
    DEFAULT_EXPECTED_RESPONSE,
    DEFAULT_FRAMEWORK,
    DEFAULT_POLL_WHILE_OFFLINE_ONLY,
    DEFAULT_POLLING_ENABLED,
    DEFAULT_POLLING_INTERVAL,
    DEFAULT_PROBE_METHOD,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_PROBE_URLS,
    DEFAULT_REDUCTION_POLICY,
    DEFAULT_SUCCESS_THRESHOLD,
    DEFAULT_VALIDATION_MODE,
    Framework,
)
from connectivity.interfaces.errors import ConfigurationError
from connectivity.models.probe import PollingConfiguration, ProbeConfiguration


class ConnectivityConfig:
    """
    Connectivity configuration with YAML file support.

    Reads from config/connectivity.yaml (or CONNECTIVITY_CONFIG_FILE) if it
    exists, otherwise uses defaults from constants.py.

    Usage:
        config = ConnectivityConfig()
        probe_config = config.build_probe_configuration()
        polling_config = config.build_polling_configuration()

    Example file:
        probe_urls:
          - https://captive.apple.com/hotspot-detect.html
        expected_response: Success
        polling_enabled: true
        polling_interval: 30
    """

    # Default config file location
    DEFAULT_CONFIG_PATH = Path(CONFIG_FILE)

    def __init__(self, config_path: Path = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML config file (None = use default)

        Raises:
            ConfigurationError: If the merged configuration is invalid
        """
        self.logger = logging.getLogger(__name__)
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH

        # Load configuration (defaults + file overrides)
        self._config = self._load_config()

        self.logger.debug(f"Connectivity config ready ({self.config_path})")

    def _get_defaults(self) -> Dict[str, Any]:
        """Get default configuration values from constants"""
        return {
            # Probes
            "probe_urls": list(DEFAULT_PROBE_URLS),
            "validation_mode": DEFAULT_VALIDATION_MODE.value,
            "expected_response": DEFAULT_EXPECTED_RESPONSE,
            "request_timeout": DEFAULT_PROBE_TIMEOUT,
            "probe_method": DEFAULT_PROBE_METHOD.value,
            "reduction_policy": DEFAULT_REDUCTION_POLICY.value,
            "success_threshold": DEFAULT_SUCCESS_THRESHOLD,

            # Scheduling
            "polling_enabled": DEFAULT_POLLING_ENABLED,
            "polling_interval": DEFAULT_POLLING_INTERVAL,
            "poll_while_offline_only": DEFAULT_POLL_WHILE_OFFLINE_ONLY,
            "check_on_foreground": DEFAULT_CHECK_ON_FOREGROUND,

            # Link state
            "framework": DEFAULT_FRAMEWORK.value,
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file or use defaults"""
        # Start with defaults
        config = self._get_defaults()

        # Try to load from file
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    file_config = yaml.safe_load(f) or {}

                if not isinstance(file_config, dict):
                    raise ValueError("top level must be a mapping")

                unknown = set(file_config) - set(config)
                if unknown:
                    self.logger.warning(
                        f"Ignoring unknown config keys in {self.config_path}: "
                        f"{', '.join(sorted(unknown))}",
                    )
                    for key in unknown:
                        file_config.pop(key)

                # Merge file config with defaults (file overrides defaults)
                config.update(file_config)

                self.logger.info(f"Loaded config from {self.config_path}")

            except Exception as e:
                self.logger.warning(
                    f"Failed to load config from {self.config_path}: {e}. "
                    f"Using defaults.",
                )
        else:
            self.logger.debug(f"Config file not found at {self.config_path}, using defaults")

        # Validate configuration
        self._validate_config(config)

        return config

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate by building the runtime configurations once"""
        probe = self._build_probe(config)
        self._build_polling(config)
        self._parse_framework(config["framework"])

        # A single URL string is stored as a one-item list
        config["probe_urls"] = list(probe.urls)

    def _save_config(self, config: Dict[str, Any] = None) -> None:
        """Save configuration to YAML file"""
        if config is None:
            config = self._config

        try:
            # Create config directory if it doesn't exist
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_path, "w") as f:
                yaml.dump(
                    config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2,
                )

            self.logger.info(f"Config saved to {self.config_path}")

        except OSError as e:
            self.logger.error(f"Failed to save config: {e}")

    # =========================================================================
    # RUNTIME CONFIGURATION BUILDERS
    # =========================================================================

    @staticmethod
    def _build_probe(config: Dict[str, Any]) -> ProbeConfiguration:
        return ProbeConfiguration(
            urls=config["probe_urls"],
            validation_mode=config["validation_mode"],
            expected_response=str(config["expected_response"]),
            timeout=config["request_timeout"],
            method=str(config["probe_method"]).upper(),
            reduction_policy=config["reduction_policy"],
            success_threshold=config["success_threshold"],
        )

    @staticmethod
    def _build_polling(config: Dict[str, Any]) -> PollingConfiguration:
        return PollingConfiguration(
            is_polling_enabled=config["polling_enabled"],
            polling_interval=config["polling_interval"],
            poll_while_offline_only=config["poll_while_offline_only"],
            check_on_foreground=config["check_on_foreground"],
        )

    @staticmethod
    def _parse_framework(value: Any) -> Framework:
        try:
            return Framework(value)
        except ValueError as e:
            raise ConfigurationError(f"Unknown framework: {value!r}") from e

    def build_probe_configuration(self) -> ProbeConfiguration:
        """Build a ProbeConfiguration from the current values"""
        return self._build_probe(self._config)

    def build_polling_configuration(self) -> PollingConfiguration:
        """Build a PollingConfiguration from the current values"""
        return self._build_polling(self._config)

    # =========================================================================
    # PROPERTY ACCESSORS
    # =========================================================================

    @property
    def probe_urls(self) -> list:
        return list(self._config["probe_urls"])

    @property
    def expected_response(self) -> str:
        return self._config["expected_response"]

    @property
    def request_timeout(self) -> float:
        """Per-request probe timeout (seconds)"""
        return float(self._config["request_timeout"])

    @property
    def polling_enabled(self) -> bool:
        return self._config["polling_enabled"]

    @property
    def polling_interval(self) -> float:
        """Seconds between timer-driven checks"""
        return float(self._config["polling_interval"])

    @property
    def framework(self) -> Framework:
        """Link-state backend"""
        return self._parse_framework(self._config["framework"])

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found
        """
        return self._config.get(key, default)

    def set(self, key: str, value: Any, save: bool = False) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: New value
            save: If True, save to file immediately

        Raises:
            ConfigurationError: If the key is unknown or the value invalid
                (the previous value is kept)
        """
        if key not in self._config:
            raise ConfigurationError(f"Unknown config key: {key}")

        candidate = dict(self._config)
        candidate[key] = value
        self._validate_config(candidate)
        self._config = candidate

        if save:
            self._save_config()

    def save(self) -> None:
        """Write the current values to the config file"""
        self._save_config()

    def reload(self) -> None:
        """Reload configuration from file"""
        self._config = self._load_config()
        self.logger.info("Configuration reloaded")

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary"""
        return self._config.copy()

    def __repr__(self) -> str:
        """Human-readable representation"""
        return f"ConnectivityConfig(path={self.config_path})"
