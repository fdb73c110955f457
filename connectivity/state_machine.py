"""
Connectivity State Machine

Turns a (link state, probe verdict) pair into a Status and records
transitions between Statuses.

derive_status() is a pure function. ConnectivityStateMachine only remembers
what was last committed, so the scheduler can tell a significant transition
(notify observers) from a repeat of the same Status (stay quiet).
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from connectivity.constants import CONNECTED_STATUSES, LinkState, Status


def derive_status(link_state: LinkState, probe_succeeded: bool) -> Status:
    """
    Derive the connectivity Status.

    Args:
        link_state: Interface-level state for this check
        probe_succeeded: Reduced probe verdict (ignored without a link)

    Returns:
        Status for the check
    """
    if link_state == LinkState.WIFI:
        if probe_succeeded:
            return Status.CONNECTED_VIA_WIFI
        return Status.CONNECTED_VIA_WIFI_WITHOUT_INTERNET

    if link_state == LinkState.CELLULAR:
        if probe_succeeded:
            return Status.CONNECTED_VIA_CELLULAR
        return Status.CONNECTED_VIA_CELLULAR_WITHOUT_INTERNET

    # NONE, and UNKNOWN when the link source could not answer
    return Status.NOT_CONNECTED


def is_connected_status(status: Status) -> bool:
    """True only when internet access has been verified"""
    return status in CONNECTED_STATUSES


@dataclass
class StatusTransition:
    """
    A committed change of Status.

    Attributes:
        old_status: Status before the transition
        new_status: Status after the transition
        reason: What caused the check ("poll", "foreground", ...)
        timestamp: Wall-clock time of the transition
    """

    old_status: Status
    new_status: Status
    reason: str = ""
    timestamp: float = field(default_factory=time.time)

    @property
    def became_connected(self) -> bool:
        """Connected transitions go to on_connected, all others to on_disconnected"""
        return is_connected_status(self.new_status)


class ConnectivityStateMachine:
    """
    Holds the committed Status and detects significant transitions.

    Not thread-safe on its own: the scheduler only commits while holding
    its check lock.
    """

    def __init__(self):
        self.current_status = Status.DETERMINING
        self.previous_status: Optional[Status] = None
        self.state_start_time = time.time()
        self.transition_count = 0
        self.logger = logging.getLogger(__name__)

        self.logger.debug("Connectivity state machine initialized in DETERMINING state")

    def get_current_status(self) -> Status:
        return self.current_status

    def get_state_duration(self) -> float:
        """Get how long we've been in the current status (seconds)"""
        return time.time() - self.state_start_time

    def reset(self) -> None:
        """Go back to DETERMINING so the next commit always counts as a transition"""
        if self.current_status != Status.DETERMINING:
            self.previous_status = self.current_status
        self.current_status = Status.DETERMINING
        self.state_start_time = time.time()

    def transition_to(self, new_status: Status, reason: str = "") -> Optional[StatusTransition]:
        """
        Commit a Status.

        Args:
            new_status: Derived Status of the latest check
            reason: Logged with the transition

        Returns:
            StatusTransition if the Status changed, None for a repeat
        """
        if new_status == self.current_status:
            self.logger.debug(f"Status unchanged: {new_status.value}")
            return None

        old_status = self.current_status
        self.previous_status = old_status
        self.current_status = new_status
        self.state_start_time = time.time()
        self.transition_count += 1

        log_msg = f"Status transition: {old_status.value} -> {new_status.value}"
        if reason:
            log_msg += f" ({reason})"
        self.logger.info(log_msg)

        return StatusTransition(
            old_status=old_status,
            new_status=new_status,
            reason=reason,
            timestamp=self.state_start_time,
        )

    def get_status_info(self) -> Dict:
        """Get detailed status information for debugging/monitoring"""
        return {
            "current_status": self.current_status.value,
            "previous_status": (
                self.previous_status.value if self.previous_status else None
            ),
            "state_duration": self.get_state_duration(),
            "transition_count": self.transition_count,
            "is_connected": is_connected_status(self.current_status),
        }
