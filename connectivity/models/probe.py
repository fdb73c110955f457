"""
Probe Models

Data classes describing what to probe, how often, and what came back.
Configurations are frozen: a check always runs against one consistent
snapshot, and invalid values are rejected the moment they are built.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple
from urllib.parse import urlparse

from connectivity.constants import (
    DEFAULT_CHECK_ON_FOREGROUND,
    DEFAULT_EXPECTED_RESPONSE,
    DEFAULT_POLL_WHILE_OFFLINE_ONLY,
    DEFAULT_POLLING_ENABLED,
    DEFAULT_POLLING_INTERVAL,
    DEFAULT_PROBE_METHOD,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_PROBE_URLS,
    DEFAULT_REDUCTION_POLICY,
    DEFAULT_SUCCESS_THRESHOLD,
    DEFAULT_VALIDATION_MODE,
    ProbeMethod,
    ReductionPolicy,
    ValidationMode,
)
from connectivity.implementations.string_validator import StringValidator
from connectivity.interfaces.errors import ConfigurationError
from connectivity.interfaces.validator_interface import ResponseValidator


def _require_positive(value, name: str) -> float:
    """Coerce to float and reject zero, negatives, NaN and non-numbers"""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
    if math.isnan(parsed) or parsed <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value!r}")
    return parsed


def _normalize_urls(urls) -> Tuple[str, ...]:
    """Validate probe URLs, keeping their order"""
    if isinstance(urls, str):
        urls = [urls]
    try:
        normalized = tuple(str(url).strip() for url in urls)
    except TypeError:
        raise ConfigurationError(f"urls must be a sequence of URLs, got {urls!r}") from None

    if not normalized:
        raise ConfigurationError("At least one probe URL is required")

    for url in normalized:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Probe URL must be http(s) with a host: {url!r}")
    return normalized


@dataclass(frozen=True)
class ProbeConfiguration:
    """
    Immutable per-check probe configuration.

    Attributes:
        urls: Probe URLs, fetched concurrently on each check
        validation_mode: How bodies are compared to expected_response
        expected_response: Substring, exact text or regex pattern
        custom_validator: Caller-supplied validator (implies CUSTOM mode)
        timeout: Per-request timeout in seconds
        method: HTTP method for probes
        reduction_policy: How per-URL verdicts combine
        success_threshold: Percentage of URLs that must pass (THRESHOLD only)

    Example:
        config = ProbeConfiguration(
            urls=["https://captive.apple.com/hotspot-detect.html"],
            validation_mode=ValidationMode.CONTAINS,
            expected_response="Success",
        )
    """

    urls: Sequence[str] = DEFAULT_PROBE_URLS
    validation_mode: ValidationMode = DEFAULT_VALIDATION_MODE
    expected_response: str = DEFAULT_EXPECTED_RESPONSE
    custom_validator: Optional[ResponseValidator] = None
    timeout: float = DEFAULT_PROBE_TIMEOUT
    method: ProbeMethod = DEFAULT_PROBE_METHOD
    reduction_policy: ReductionPolicy = DEFAULT_REDUCTION_POLICY
    success_threshold: float = DEFAULT_SUCCESS_THRESHOLD

    # Resolved once so regex compilation errors surface at build time
    validator: ResponseValidator = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "urls", _normalize_urls(self.urls))
        object.__setattr__(self, "timeout", _require_positive(self.timeout, "timeout"))

        try:
            object.__setattr__(self, "validation_mode", ValidationMode(self.validation_mode))
            object.__setattr__(self, "method", ProbeMethod(self.method))
            object.__setattr__(self, "reduction_policy", ReductionPolicy(self.reduction_policy))
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if self.expected_response is None:
            raise ConfigurationError("expected_response cannot be None")

        threshold = _require_positive(self.success_threshold, "success_threshold")
        if threshold > 100:
            raise ConfigurationError(
                f"success_threshold is a percentage (0, 100], got {threshold}",
            )
        object.__setattr__(self, "success_threshold", threshold)

        if self.custom_validator is not None:
            if not isinstance(self.custom_validator, ResponseValidator):
                raise ConfigurationError(
                    "custom_validator must implement ResponseValidator",
                )
            object.__setattr__(self, "validation_mode", ValidationMode.CUSTOM)
            object.__setattr__(self, "validator", self.custom_validator)
        elif self.validation_mode == ValidationMode.CUSTOM:
            raise ConfigurationError("CUSTOM validation mode requires custom_validator")
        else:
            # HEAD responses carry no body, so any other expectation always fails
            if self.method == ProbeMethod.HEAD and self.expected_response != "":
                raise ConfigurationError(
                    "HEAD probes have no body; expected_response must be empty "
                    "unless a custom_validator is used",
                )
            object.__setattr__(
                self,
                "validator",
                StringValidator(self.validation_mode, self.expected_response),
            )


@dataclass(frozen=True)
class PollingConfiguration:
    """
    Immutable scheduling configuration.

    Attributes:
        is_polling_enabled: Re-check every polling_interval seconds
        polling_interval: Seconds between timer-driven checks
        poll_while_offline_only: Disarm the timer while internet is confirmed
        check_on_foreground: Check when the host reports becoming active
    """

    is_polling_enabled: bool = DEFAULT_POLLING_ENABLED
    polling_interval: float = DEFAULT_POLLING_INTERVAL
    poll_while_offline_only: bool = DEFAULT_POLL_WHILE_OFFLINE_ONLY
    check_on_foreground: bool = DEFAULT_CHECK_ON_FOREGROUND

    def __post_init__(self):
        object.__setattr__(
            self,
            "polling_interval",
            _require_positive(self.polling_interval, "polling_interval"),
        )
        for name in ("is_polling_enabled", "poll_while_offline_only", "check_on_foreground"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"{name} must be a boolean")


@dataclass
class ProbeURLResult:
    """
    Outcome of probing a single URL.

    Attributes:
        url: Probe URL
        success: True if the response validated
        status_code: HTTP status code (None on transport failure)
        error: Transport or validator error message
        elapsed: Seconds spent on the request
    """

    url: str
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    elapsed: float = 0.0


@dataclass
class ProbeResult:
    """
    Reduced outcome of one probe round.

    Attributes:
        success: Verdict after applying the reduction policy
        url_results: Per-URL outcomes, in configured URL order
    """

    success: bool
    url_results: list = field(default_factory=list)

    @property
    def passed_count(self) -> int:
        """Number of URLs that validated"""
        return sum(1 for result in self.url_results if result.success)

    @property
    def failed_urls(self) -> list:
        """URLs that did not validate"""
        return [result.url for result in self.url_results if not result.success]
