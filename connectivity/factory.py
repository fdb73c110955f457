"""
Connectivity Factory

Creates link-state sources and HTTP transports.
Automatically selects the event-driven NetworkManager backend when the
system bus offers it, and falls back to interface polling otherwise.

Callers never construct backends directly, so tests and development
machines can swap in mocks from one place.
"""

import logging
from typing import Literal

from connectivity.constants import DEFAULT_FRAMEWORK, Framework, LinkState
from connectivity.implementations.mock_link_state import MockLinkState
from connectivity.implementations.mock_transport import MockTransport
from connectivity.implementations.network_manager_link_state import NetworkManagerLinkState
from connectivity.implementations.polling_link_state import PollingLinkState
from connectivity.implementations.requests_transport import RequestsTransport
from connectivity.interfaces.errors import ConfigurationError
from connectivity.interfaces.link_state_interface import LinkStateInterface
from connectivity.interfaces.transport_interface import TransportInterface

# Type aliases for better type hints
LinkMode = Literal["auto", "real", "mock"]


class LinkStateFactory:
    """
    Factory for creating link-state sources.

    Usage:
        # Auto-detect (NetworkManager if reachable, polling otherwise)
        link = LinkStateFactory.create_link_source(Framework.NETWORK_MANAGER)

        # Force mock mode (useful for testing)
        link = LinkStateFactory.create_link_source(mode="mock")

        # Force the requested backend (raises error if not available)
        link = LinkStateFactory.create_link_source(Framework.NETWORK_MANAGER, mode="real")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_link_source(
        cls,
        framework: Framework = DEFAULT_FRAMEWORK,
        mode: LinkMode = "auto",
    ) -> LinkStateInterface:
        """
        Create a link-state source.

        Args:
            framework: Requested backend (POLLING or NETWORK_MANAGER)
            mode: "auto" (fall back to polling), "real" (requested backend
                  or error), "mock" (force simulation)

        Returns:
            LinkStateInterface implementation

        Raises:
            RuntimeError: If mode="real" but the backend is not available
            ConfigurationError: If framework or mode is not recognized
        """
        try:
            framework = Framework(framework)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if mode == "mock":
            cls._logger.info("Creating Mock link source (forced)")
            return MockLinkState(LinkState.WIFI)

        if mode not in ("auto", "real"):
            raise ConfigurationError(f"Unknown link mode: {mode}")

        if framework == Framework.POLLING:
            cls._logger.info("Creating polling link source")
            return PollingLinkState()

        if mode == "real":
            try:
                link = NetworkManagerLinkState()
                cls._logger.info("Creating NetworkManager link source (forced)")
                return link
            except Exception as e:
                raise RuntimeError(
                    f"NetworkManager link source requested but not available: {e}",
                ) from e

        # mode == "auto" - try NetworkManager first, fall back to polling
        try:
            link = NetworkManagerLinkState()
            cls._logger.info("Creating NetworkManager link source (auto-detected)")
            return link
        except Exception as e:
            cls._logger.warning(
                f"NetworkManager not available ({e}), using polling link source",
            )
            return PollingLinkState()

    @classmethod
    def is_network_manager_available(cls) -> bool:
        """
        Check whether the event-driven backend can be used.

        Useful for diagnostics (`connectivity-monitor check --verbose`).
        """
        try:
            link = NetworkManagerLinkState()
        except Exception:
            return False
        link.cleanup()
        return True


# Convenience function for quick creation


def create_transport(force_mock: bool = False) -> TransportInterface:
    """
    Quick transport creation.

    Args:
        force_mock: If True, return an unstubbed MockTransport

    Example:
        transport = create_transport()
        response = transport.fetch("https://captive.apple.com", timeout=5.0)
    """
    if force_mock:
        return MockTransport()
    return RequestsTransport()

