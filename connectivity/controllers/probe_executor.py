"""
Probe Executor

Fires one HTTP probe per configured URL, validates each response, and
reduces the per-URL verdicts into a single "internet reachable" boolean.

Probes run concurrently on a thread pool and the executor waits for all of
them (each bounded by its own timeout) before reducing. Nothing a probe does
ever raises out of execute(): timeouts, DNS failures, refused connections and
misbehaving custom validators all count as a failed URL.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List

from connectivity.constants import MAX_PROBE_WORKERS, ReductionPolicy
from connectivity.interfaces.transport_interface import TransportError, TransportInterface
from connectivity.models.probe import ProbeConfiguration, ProbeResult, ProbeURLResult


def reduce_results(
    results: List[bool],
    policy: ReductionPolicy,
    success_threshold: float = 100.0,
) -> bool:
    """
    Combine per-URL verdicts according to a reduction policy.

    Args:
        results: One boolean per probed URL
        policy: ALL, ANY or THRESHOLD
        success_threshold: Percentage of passing URLs required by THRESHOLD

    Returns:
        Combined verdict (False when there are no results)
    """
    if not results:
        return False

    if policy == ReductionPolicy.ALL:
        return all(results)

    if policy == ReductionPolicy.ANY:
        return any(results)

    passed_percent = 100.0 * sum(1 for result in results if result) / len(results)
    return passed_percent >= success_threshold


class ProbeExecutor:
    """
    Runs probe rounds against a transport.

    Usage:
        executor = ProbeExecutor(transport=RequestsTransport())
        result = executor.execute(ProbeConfiguration())
        if result.success:
            print("Internet reachable")
    """

    def __init__(self, transport: TransportInterface, max_workers: int = MAX_PROBE_WORKERS):
        """
        Initialize executor.

        Args:
            transport: HTTP transport used for every probe
            max_workers: Upper bound on concurrent probes per round
        """
        self.logger = logging.getLogger(__name__)
        self.transport = transport
        self.max_workers = max_workers

    def execute(self, config: ProbeConfiguration) -> ProbeResult:
        """
        Run one probe round.

        Args:
            config: Probe configuration snapshot for this round

        Returns:
            ProbeResult with the reduced verdict and per-URL details
        """
        urls = list(config.urls)
        workers = max(1, min(len(urls), self.max_workers))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
            futures = [pool.submit(self._probe_url, url, config) for url in urls]
            url_results = [future.result() for future in futures]

        success = reduce_results(
            [result.success for result in url_results],
            config.reduction_policy,
            config.success_threshold,
        )

        self.logger.debug(
            f"Probe round: {sum(1 for r in url_results if r.success)}/{len(url_results)} "
            f"URLs passed ({config.reduction_policy.value}) -> "
            f"{'reachable' if success else 'unreachable'}",
        )

        return ProbeResult(success=success, url_results=url_results)

    def _probe_url(self, url: str, config: ProbeConfiguration) -> ProbeURLResult:
        """Fetch and validate a single URL. Never raises."""
        start_time = time.monotonic()

        try:
            response = self.transport.fetch(url, config.timeout, config.method)
        except TransportError as e:
            self.logger.debug(f"Probe failed for {url}: {e}")
            return ProbeURLResult(
                url=url,
                success=False,
                error=str(e),
                elapsed=time.monotonic() - start_time,
            )
        except Exception as e:
            # Transport bugs must not take the scheduler down
            self.logger.warning(f"Unexpected transport error for {url}: {e}")
            return ProbeURLResult(
                url=url,
                success=False,
                error=f"Unexpected transport error: {e}",
                elapsed=time.monotonic() - start_time,
            )

        elapsed = time.monotonic() - start_time

        try:
            valid = bool(config.validator.is_response_valid(url, response, response.body))
        except Exception as e:
            self.logger.error(f"Response validator raised for {url}: {e}")
            return ProbeURLResult(
                url=url,
                success=False,
                status_code=response.status_code,
                error=f"Validator error: {e}",
                elapsed=elapsed,
            )

        if not valid:
            self.logger.debug(
                f"Probe response for {url} did not validate "
                f"(HTTP {response.status_code}, {len(response.body)} bytes)",
            )

        return ProbeURLResult(
            url=url,
            success=valid,
            status_code=response.status_code,
            elapsed=elapsed,
        )
