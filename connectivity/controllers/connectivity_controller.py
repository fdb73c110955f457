"""
Connectivity Controller

The Connectivity aggregate: schedules checks, runs them one at a time,
commits the derived Status and notifies observers on significant
transitions.

A check is: query the link source -> if there is a link, run a probe round
-> derive the Status -> commit. Checks are triggered by:
- start_notifier() (one immediate check)
- the polling timer (if enabled)
- the host becoming active (EventBus or application_did_become_active())
- the link source reporting a change
- check_connectivity() (manual)

Threading model:
- _check_lock makes checks single-flight. Timer, foreground and link-change
  triggers that find it taken are dropped; manual checks wait for the
  in-flight check and return its result.
- _state_lock guards the active flag, the generation counter and commits.
  stop_notifier() bumps the generation, so a check that was already running
  finishes but its result is discarded and notifies nobody.
- Observers run on the checking thread, after the commit, before the next
  check can start.
"""

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from connectivity.config import ConnectivityConfig
from connectivity.constants import (
    CALLBACK_NAMES,
    CALLBACK_ON_CHANGE,
    CALLBACK_ON_CONNECTED,
    CALLBACK_ON_DISCONNECTED,
    DEFAULT_FRAMEWORK,
    NOTIFIER_JOIN_TIMEOUT,
    STATUS_DESCRIPTIONS,
    CheckTrigger,
    Framework,
    LinkState,
    ReductionPolicy,
    Status,
    ValidationMode,
)
from connectivity.controllers.probe_executor import ProbeExecutor
from connectivity.event_bus import EventBus, LifecycleEvent
from connectivity.factory import LinkMode, LinkStateFactory, create_transport
from connectivity.interfaces.errors import ConfigurationError
from connectivity.interfaces.link_state_interface import LinkStateError, LinkStateInterface
from connectivity.interfaces.transport_interface import TransportInterface
from connectivity.interfaces.validator_interface import ResponseValidator
from connectivity.models.probe import PollingConfiguration, ProbeConfiguration, ProbeResult
from connectivity.state_machine import (
    ConnectivityStateMachine,
    StatusTransition,
    derive_status,
    is_connected_status,
)

ConnectivityCallback = Callable[["Connectivity"], None]

# How often a waiting notifier thread re-checks its stop event (seconds)
_LOCK_POLL_INTERVAL = 0.1


class Connectivity:
    """
    Detects genuine internet connectivity and reports changes.

    Usage:
        connectivity = Connectivity()

        @connectivity.when_connected
        def online(conn):
            print(f"Online: {conn.status_description}")

        @connectivity.when_disconnected
        def offline(conn):
            print(f"Offline: {conn.status_description}")

        connectivity.start_notifier()
        ...
        connectivity.stop_notifier()

    One-shot usage:
        status = Connectivity().check_connectivity()
    """

    def __init__(
        self,
        probe_config: Optional[ProbeConfiguration] = None,
        polling_config: Optional[PollingConfiguration] = None,
        framework: Framework = DEFAULT_FRAMEWORK,
        link_source: Optional[LinkStateInterface] = None,
        transport: Optional[TransportInterface] = None,
        lifecycle_bus: Optional[EventBus] = None,
        link_mode: LinkMode = "auto",
    ):
        """
        Initialize connectivity monitor (idle until start_notifier()).

        Args:
            probe_config: What to probe and how to validate (None = defaults)
            polling_config: Scheduling options (None = defaults)
            framework: Link-state backend used when link_source is None
            link_source: Link-state source to use, or None to create one
                through the factory on first use
            transport: HTTP transport, or None for the requests transport
            lifecycle_bus: Bus carrying host lifecycle events (optional)
            link_mode: Factory mode for the auto-created link source
        """
        self.logger = logging.getLogger(__name__)

        try:
            self._framework = Framework(framework)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        self._probe_config = probe_config or ProbeConfiguration()
        self._polling_config = polling_config or PollingConfiguration()

        self._link_source = link_source
        self._owns_link_source = link_source is None
        self._link_mode = link_mode
        self._link_handle: Optional[int] = None

        self.transport = transport or create_transport()
        self._owns_transport = transport is None
        self._executor = ProbeExecutor(self.transport)

        self.lifecycle_bus = lifecycle_bus

        self._state_machine = ConnectivityStateMachine()
        self._link_state = LinkState.UNKNOWN
        self._last_probe_result: Optional[ProbeResult] = None
        self._last_check_time: Optional[float] = None
        self.last_transition: Optional[StatusTransition] = None
        self.check_count = 0

        # Observer lists, invoked in CALLBACK_NAMES order
        self.callbacks: Dict[str, list] = {name: [] for name in CALLBACK_NAMES}
        self._callbacks_lock = threading.Lock()

        # Scheduling state
        self._check_lock = threading.Lock()
        self._check_owner: Optional[int] = None
        self._state_lock = threading.RLock()
        self._timer_condition = threading.Condition()
        self._active = False
        self._generation = 0
        self._stop_event = threading.Event()
        self._notifier_thread: Optional[threading.Thread] = None

        self.logger.info(
            f"Connectivity initialized ({len(self._probe_config.urls)} probe URL(s), "
            f"framework: {self._framework.value})",
        )

    @classmethod
    def from_config(
        cls,
        config: Optional[ConnectivityConfig] = None,
        link_mode: LinkMode = "auto",
        lifecycle_bus: Optional[EventBus] = None,
    ) -> "Connectivity":
        """
        Create an instance from a ConnectivityConfig (YAML + environment).

        Args:
            config: Loaded configuration (None = default file)
            link_mode: "auto", "real" or "mock" (mock also mocks the transport)
            lifecycle_bus: Bus carrying host lifecycle events (optional)
        """
        config = config or ConnectivityConfig()
        return cls(
            probe_config=config.build_probe_configuration(),
            polling_config=config.build_polling_configuration(),
            framework=config.framework,
            transport=create_transport(force_mock=(link_mode == "mock")),
            lifecycle_bus=lifecycle_bus,
            link_mode=link_mode,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start_notifier(self) -> None:
        """
        Start monitoring.

        Resets the status to DETERMINING and schedules an immediate check, so
        observers always hear about the first result. No-op if already active.
        """
        with self._state_lock:
            if self._active:
                self.logger.debug("Notifier already active")
                return

            self._active = True
            self._generation += 1
            generation = self._generation
            self._stop_event = threading.Event()
            self._state_machine.reset()

            link_source = self._ensure_link_source()
            self._link_handle = link_source.subscribe(self._on_link_state_change)
            try:
                link_source.start()
            except LinkStateError as e:
                self.logger.warning(f"Link source could not start watching: {e}")

            if self.lifecycle_bus is not None:
                self.lifecycle_bus.subscribe(
                    LifecycleEvent.DID_BECOME_ACTIVE,
                    self._on_lifecycle_event,
                )

            self._notifier_thread = threading.Thread(
                target=self._notifier_worker,
                args=(generation, self._stop_event),
                daemon=True,
                name="ConnectivityNotifier",
            )
            self._notifier_thread.start()

        polling = self._polling_config
        self.logger.info(
            f"Notifier started (polling: "
            f"{f'every {polling.polling_interval}s' if polling.is_polling_enabled else 'off'}"
            f"{', offline only' if polling.is_polling_enabled and polling.poll_while_offline_only else ''})",
        )

    def stop_notifier(self) -> None:
        """
        Stop monitoring.

        Cancels the polling timer and detaches from the link source and the
        lifecycle bus. A check still in flight completes, but its result is
        discarded. No-op if idle.

        A link source passed in by the caller keeps watching (it may be shared);
        only a source this instance created is stopped.
        """
        with self._state_lock:
            if not self._active:
                self.logger.debug("Notifier not active")
                return

            self._active = False
            self._generation += 1
            self._stop_event.set()
            thread = self._notifier_thread
            self._notifier_thread = None
            link_handle = self._link_handle
            self._link_handle = None

        # Wake a notifier parked on the disarmed timer
        with self._timer_condition:
            self._timer_condition.notify_all()

        if self._link_source is not None:
            if link_handle is not None:
                self._link_source.unsubscribe(link_handle)
            # A caller-supplied source may be shared with other instances
            if self._owns_link_source:
                self._link_source.stop()

        if self.lifecycle_bus is not None:
            self.lifecycle_bus.unsubscribe(
                LifecycleEvent.DID_BECOME_ACTIVE,
                self._on_lifecycle_event,
            )

        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=NOTIFIER_JOIN_TIMEOUT)
            if thread.is_alive():
                self.logger.warning("Notifier thread did not stop in time")

        self.logger.info("Notifier stopped")

    def cleanup(self) -> None:
        """Stop monitoring and release owned resources"""
        self.stop_notifier()

        if self._owns_link_source and self._link_source is not None:
            self._link_source.cleanup()
            self._link_source = None

        if self._owns_transport:
            self.transport.close()

    def __enter__(self):
        self.start_notifier()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_checking(self) -> bool:
        """True while a check (including its observers) is running"""
        return self._check_lock.locked()

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the running check, if any, has finished.

        Args:
            timeout: Maximum time to wait in seconds, or None

        Returns:
            True if became idle, False if timeout (always False from an observer)

        Example:
            connectivity.start_notifier()
            connectivity.wait_until_idle()
            print(connectivity.status_description)
        """
        if self._check_owner == threading.get_ident():
            return False

        acquired = self._check_lock.acquire(timeout=-1 if timeout is None else timeout)
        if acquired:
            self._check_lock.release()
        return acquired

    # =========================================================================
    # CHECKS
    # =========================================================================

    def check_connectivity(self) -> Status:
        """
        Run a check now and return the committed Status.

        If a check is already running, waits for it and returns its result.
        Called from an observer (while its check still holds the lock),
        returns the current Status without starting another check.
        """
        if self._check_owner == threading.get_ident():
            return self.status

        with self._state_lock:
            generation = self._generation if self._active else None

        if not self._check_lock.acquire(blocking=False):
            self.logger.debug("Check in progress, waiting for its result")
            with self._check_lock:
                pass
            return self.status

        return self._run_locked(CheckTrigger.MANUAL, generation)

    def application_did_become_active(self, data: Any = None) -> bool:
        """
        Host lifecycle hook: the application came to the foreground.

        Returns:
            True if a check was scheduled
        """
        if not self._polling_config.check_on_foreground:
            self.logger.debug("Foreground check disabled, ignoring")
            return False
        return self._trigger_background_check(CheckTrigger.FOREGROUND)

    def _on_lifecycle_event(self, data: Any = None) -> None:
        self.application_did_become_active(data)

    def _on_link_state_change(self, link_state: LinkState) -> None:
        """Link source callback (runs on the backend's thread)"""
        self.logger.debug(f"Link change reported: {link_state.value}")
        self._trigger_background_check(CheckTrigger.LINK_CHANGE)

    def _trigger_background_check(self, trigger: CheckTrigger) -> bool:
        """Run an out-of-band check on its own thread (dropped if busy)"""
        # Lock-free reads: the commit re-validates the generation
        if not self._active:
            return False
        generation = self._generation

        if self._check_lock.locked():
            self.logger.debug(f"Check in progress, dropping {trigger.value} trigger")
            return False

        threading.Thread(
            target=self._try_check,
            args=(trigger, generation),
            daemon=True,
            name=f"ConnectivityCheck-{trigger.value}",
        ).start()
        return True

    def _notifier_worker(self, generation: int, stop_event: threading.Event) -> None:
        """Initial check, then timer-driven checks until stopped"""
        # The initial check may wait behind a manual one, never skip it
        while not self._check_lock.acquire(timeout=_LOCK_POLL_INTERVAL):
            if stop_event.is_set():
                return
        self._run_locked(CheckTrigger.INITIAL, generation)

        polling = self._polling_config
        if not polling.is_polling_enabled:
            return

        while self._wait_for_poll(polling, stop_event):
            self._try_check(CheckTrigger.POLL, generation)

        self.logger.debug("Notifier thread exiting")

    def _wait_for_poll(self, polling: PollingConfiguration, stop_event: threading.Event) -> bool:
        """
        Wait for the next poll tick.

        While poll_while_offline_only is set and internet is confirmed, the
        timer stays disarmed until a commit reports otherwise.

        Returns:
            False once the notifier is stopped
        """
        if polling.poll_while_offline_only:
            with self._timer_condition:
                while self.is_connected and not stop_event.is_set():
                    self._timer_condition.wait()

        return not stop_event.wait(polling.polling_interval)

    def _try_check(self, trigger: CheckTrigger, generation: int) -> Optional[Status]:
        if not self._check_lock.acquire(blocking=False):
            self.logger.debug(f"Check in progress, dropping {trigger.value} trigger")
            return None
        return self._run_locked(trigger, generation)

    def _run_locked(self, trigger: CheckTrigger, generation: Optional[int]) -> Status:
        """Run one check. Caller has acquired _check_lock; released here."""
        self._check_owner = threading.get_ident()
        try:
            if generation is not None and generation != self._generation:
                self.logger.debug(f"Skipping stale {trigger.value} check")
                return self.status
            return self._perform_check(trigger, generation)
        finally:
            self._check_owner = None
            self._check_lock.release()

    def _perform_check(self, trigger: CheckTrigger, generation: Optional[int]) -> Status:
        probe_config = self._probe_config
        link_state = self._query_link_state()

        probe_result = None
        probe_succeeded = False
        if link_state in (LinkState.WIFI, LinkState.CELLULAR):
            probe_result = self._executor.execute(probe_config)
            probe_succeeded = probe_result.success

        status = derive_status(link_state, probe_succeeded)

        if probe_result is not None:
            self.logger.debug(
                f"Check ({trigger.value}): link={link_state.value}, "
                f"probes {probe_result.passed_count}/{len(probe_result.url_results)} -> "
                f"{status.value}",
            )
        else:
            self.logger.debug(
                f"Check ({trigger.value}): link={link_state.value}, no probes -> {status.value}",
            )

        return self._commit(trigger, generation, link_state, status, probe_result)

    def _query_link_state(self) -> LinkState:
        try:
            return self._ensure_link_source().query()
        except Exception as e:
            self.logger.warning(f"Link-state query failed: {e}")
            return LinkState.UNKNOWN

    def _commit(
        self,
        trigger: CheckTrigger,
        generation: Optional[int],
        link_state: LinkState,
        status: Status,
        probe_result: Optional[ProbeResult],
    ) -> Status:
        """
        Record a check result and notify observers of a transition.

        Observers run under _state_lock, so once stop_notifier() has returned
        no observer of this instance is still being called.
        """
        with self._state_lock:
            if generation is not None and (generation != self._generation or not self._active):
                self.logger.debug(
                    f"Discarding {trigger.value} check result ({status.value}): notifier stopped",
                )
                return self.status

            self._link_state = link_state
            self._last_probe_result = probe_result
            self._last_check_time = time.time()
            self.check_count += 1

            transition = self._state_machine.transition_to(status, trigger.value)
            if transition is not None:
                self.last_transition = transition
                self._notify_observers(transition)

        # Re-arm the polling timer if internet was lost
        with self._timer_condition:
            self._timer_condition.notify_all()

        return status

    # =========================================================================
    # OBSERVERS
    # =========================================================================

    def register_callback(self, callback_name: str, callback_func: ConnectivityCallback) -> None:
        """
        Register an observer.

        Args:
            callback_name: "on_change", "on_connected" or "on_disconnected"
            callback_func: Called with this Connectivity instance

        Raises:
            ValueError: If callback_name is unknown
        """
        if callback_name not in self.callbacks:
            raise ValueError(f"Unknown callback: {callback_name}")
        with self._callbacks_lock:
            self.callbacks[callback_name].append(callback_func)
        self.logger.debug(f"Registered callback: {callback_name}")

    def unregister_callback(self, callback_name: str, callback_func: ConnectivityCallback) -> bool:
        """
        Remove an observer.

        Returns:
            True if it was registered
        """
        if callback_name not in self.callbacks:
            raise ValueError(f"Unknown callback: {callback_name}")
        with self._callbacks_lock:
            if callback_func in self.callbacks[callback_name]:
                self.callbacks[callback_name].remove(callback_func)
                return True
        return False

    def when_connected(self, callback_func: ConnectivityCallback) -> ConnectivityCallback:
        """Register an observer for transitions to a connected status (decorator-friendly)"""
        self.register_callback(CALLBACK_ON_CONNECTED, callback_func)
        return callback_func

    def when_disconnected(self, callback_func: ConnectivityCallback) -> ConnectivityCallback:
        """Register an observer for transitions to any status without internet"""
        self.register_callback(CALLBACK_ON_DISCONNECTED, callback_func)
        return callback_func

    def when_changed(self, callback_func: ConnectivityCallback) -> ConnectivityCallback:
        """Register an observer for every significant transition"""
        self.register_callback(CALLBACK_ON_CHANGE, callback_func)
        return callback_func

    def _notify_observers(self, transition: StatusTransition) -> None:
        direction = CALLBACK_ON_CONNECTED if transition.became_connected else CALLBACK_ON_DISCONNECTED
        with self._callbacks_lock:
            callbacks = list(self.callbacks[CALLBACK_ON_CHANGE]) + list(self.callbacks[direction])

        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                self.logger.error(f"Error in connectivity callback: {e}")

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def status(self) -> Status:
        return self._state_machine.current_status

    @property
    def is_connected(self) -> bool:
        """True only when internet access has been verified"""
        return is_connected_status(self.status)

    @property
    def is_connected_via_wifi(self) -> bool:
        return self.status == Status.CONNECTED_VIA_WIFI

    @property
    def is_connected_via_cellular(self) -> bool:
        return self.status == Status.CONNECTED_VIA_CELLULAR

    @property
    def is_connected_via_wifi_without_internet(self) -> bool:
        return self.status == Status.CONNECTED_VIA_WIFI_WITHOUT_INTERNET

    @property
    def is_connected_via_cellular_without_internet(self) -> bool:
        return self.status == Status.CONNECTED_VIA_CELLULAR_WITHOUT_INTERNET

    @property
    def status_description(self) -> str:
        return STATUS_DESCRIPTIONS[self.status]

    @property
    def link_state(self) -> LinkState:
        """Link state seen by the last committed check"""
        return self._link_state

    @property
    def last_probe_result(self) -> Optional[ProbeResult]:
        """Probe round of the last committed check (None if no link)"""
        return self._last_probe_result

    def get_status_info(self) -> Dict:
        """Get detailed status information for debugging/monitoring"""
        probe_result = self._last_probe_result
        return {
            "status": self.status.value,
            "description": self.status_description,
            "is_connected": self.is_connected,
            "link_state": self._link_state.value,
            "is_active": self._active,
            "framework": self._framework.value,
            "check_count": self.check_count,
            "last_check_time": self._last_check_time,
            "last_probe": (
                {
                    "success": probe_result.success,
                    "passed": probe_result.passed_count,
                    "total": len(probe_result.url_results),
                    "failed_urls": probe_result.failed_urls,
                }
                if probe_result
                else None
            ),
            "polling": {
                "enabled": self._polling_config.is_polling_enabled,
                "interval": self._polling_config.polling_interval,
                "offline_only": self._polling_config.poll_while_offline_only,
                "check_on_foreground": self._polling_config.check_on_foreground,
            },
            "state_machine": self._state_machine.get_status_info(),
            "callbacks_registered": {
                name: len(callbacks) for name, callbacks in self.callbacks.items()
            },
        }

    # =========================================================================
    # CONFIGURATION (only while idle)
    # =========================================================================

    def _require_idle(self, name: str) -> None:
        if self._active:
            raise ConfigurationError(f"Cannot change {name} while the notifier is active")

    def _update_probe_config(self, name: str, **changes) -> None:
        self._require_idle(name)
        self._probe_config = replace(self._probe_config, **changes)

    def _update_polling_config(self, name: str, **changes) -> None:
        self._require_idle(name)
        self._polling_config = replace(self._polling_config, **changes)

    @property
    def probe_config(self) -> ProbeConfiguration:
        return self._probe_config

    @probe_config.setter
    def probe_config(self, value: ProbeConfiguration) -> None:
        self._require_idle("probe_config")
        self._probe_config = value

    @property
    def polling_config(self) -> PollingConfiguration:
        return self._polling_config

    @polling_config.setter
    def polling_config(self, value: PollingConfiguration) -> None:
        self._require_idle("polling_config")
        self._polling_config = value

    @property
    def probe_urls(self) -> tuple:
        return self._probe_config.urls

    @probe_urls.setter
    def probe_urls(self, value) -> None:
        self._update_probe_config("probe_urls", urls=value)

    @property
    def validation_mode(self) -> ValidationMode:
        return self._probe_config.validation_mode

    @validation_mode.setter
    def validation_mode(self, value) -> None:
        try:
            mode = ValidationMode(value)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        # Choosing a built-in mode drops the custom validator
        custom = self._probe_config.custom_validator if mode == ValidationMode.CUSTOM else None
        self._update_probe_config("validation_mode", validation_mode=mode, custom_validator=custom)

    @property
    def expected_response(self) -> str:
        return self._probe_config.expected_response

    @expected_response.setter
    def expected_response(self, value: str) -> None:
        self._update_probe_config("expected_response", expected_response=value)

    @property
    def custom_validator(self) -> Optional[ResponseValidator]:
        return self._probe_config.custom_validator

    @custom_validator.setter
    def custom_validator(self, value: Optional[ResponseValidator]) -> None:
        changes = {"custom_validator": value}
        if value is None and self._probe_config.validation_mode == ValidationMode.CUSTOM:
            changes["validation_mode"] = ValidationMode.CONTAINS
        self._update_probe_config("custom_validator", **changes)

    @property
    def request_timeout(self) -> float:
        return self._probe_config.timeout

    @request_timeout.setter
    def request_timeout(self, value: float) -> None:
        self._update_probe_config("request_timeout", timeout=value)

    @property
    def reduction_policy(self) -> ReductionPolicy:
        return self._probe_config.reduction_policy

    @reduction_policy.setter
    def reduction_policy(self, value) -> None:
        self._update_probe_config("reduction_policy", reduction_policy=value)

    @property
    def is_polling_enabled(self) -> bool:
        return self._polling_config.is_polling_enabled

    @is_polling_enabled.setter
    def is_polling_enabled(self, value: bool) -> None:
        self._update_polling_config("is_polling_enabled", is_polling_enabled=value)

    @property
    def polling_interval(self) -> float:
        return self._polling_config.polling_interval

    @polling_interval.setter
    def polling_interval(self, value: float) -> None:
        self._update_polling_config("polling_interval", polling_interval=value)

    @property
    def poll_while_offline_only(self) -> bool:
        return self._polling_config.poll_while_offline_only

    @poll_while_offline_only.setter
    def poll_while_offline_only(self, value: bool) -> None:
        self._update_polling_config("poll_while_offline_only", poll_while_offline_only=value)

    @property
    def check_on_foreground(self) -> bool:
        return self._polling_config.check_on_foreground

    @check_on_foreground.setter
    def check_on_foreground(self, value: bool) -> None:
        self._update_polling_config("check_on_foreground", check_on_foreground=value)

    @property
    def framework(self) -> Framework:
        return self._framework

    @framework.setter
    def framework(self, value) -> None:
        self._require_idle("framework")
        try:
            framework = Framework(value)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if framework == self._framework:
            return

        if not self._owns_link_source:
            raise ConfigurationError(
                "Cannot change framework: the link source was supplied by the caller",
            )

        self._framework = framework
        # An auto-created source is rebuilt for the new backend on next use
        if self._link_source is not None:
            self._link_source.cleanup()
            self._link_source = None

    def _ensure_link_source(self) -> LinkStateInterface:
        if self._link_source is None:
            self._link_source = LinkStateFactory.create_link_source(
                self._framework,
                mode=self._link_mode,
            )
        return self._link_source

    def __repr__(self) -> str:
        return f"Connectivity(status={self.status.value}, active={self._active})"
