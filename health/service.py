"""
Health check service for the Movie API.

This module provides the HealthCheckService class, which answers two
questions:

- liveness: is the process accepting requests? No dependency is touched.
- readiness: are the dependencies usable? Every registered probe runs
  concurrently and the individual results are folded into one verdict.

Probe failures are data, never errors: a dependency that is down, slow or
whose probe blows up shows up as an unhealthy item in the report, and
``check_readiness`` always returns a result unless the caller cancels it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple

from health.probes import DependencyProbe, DependencyType
from telemetry.service import NoOpSpan, TelemetryService

logger = logging.getLogger(__name__)

API_HEALTH_CHECK_OPERATION = "service.healthcheck.api"
INFRASTRUCTURE_HEALTH_CHECK_OPERATION = "service.healthcheck.infrastructure"

HEALTHY_MSG = "It's healthy as hell."
COUGHING_MSG = "It's getting cough. Please check the soft dependency."
DYING_MSG = "It's dying. Please check the hard dependency."


@dataclass(frozen=True)
class DependencyCheckItem:
    """
    Result of probing one dependency.

    Attributes:
        name: The name of the dependency (e.g., "Master Database SQL")
        is_healthy: Whether the dependency answered the probe
        dependency_type: hard or soft, as registered with the probe
        remarks: The probe error when unhealthy, empty otherwise
    """
    name: str
    is_healthy: bool
    dependency_type: DependencyType
    remarks: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "is_healthy": self.is_healthy,
            "dependency_type": self.dependency_type.value,
            "remarks": self.remarks,
        }


@dataclass
class InfrastructureHealthResult:
    """
    Outcome of one readiness run.

    Items are appended concurrently by the probe tasks while the run is
    collecting, in completion order. ``examine_health`` closes the result;
    after that it is read-only and needs no locking.

    Attributes:
        items: One DependencyCheckItem per probe, in completion order
        result: One of HEALTHY_MSG, COUGHING_MSG, DYING_MSG
        is_ok: False when any hard dependency is unhealthy
    """
    items: list[DependencyCheckItem] = field(default_factory=list)
    result: str = ""
    is_ok: bool = False
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    _closed: bool = field(default=False, repr=False, compare=False)

    @property
    def closed(self) -> bool:
        return self._closed

    async def add_item(self, item: DependencyCheckItem) -> None:
        """Append ``item`` under the result lock."""
        async with self._lock:
            if self._closed:
                raise RuntimeError("cannot add items to a closed health result")
            self.items.append(item)

    def examine_health(self) -> None:
        """
        Compute the verdict from the collected items and close the result.

        An unhealthy hard dependency makes the service dying, whatever else
        happened. Otherwise any unhealthy (soft) dependency makes it
        coughing. The verdict does not depend on item order.
        """
        hard_failure = False
        any_failure = False
        for item in self.items:
            if not item.is_healthy:
                any_failure = True
                if item.dependency_type == DependencyType.HARD:
                    hard_failure = True

        self.is_ok = not hard_failure
        if hard_failure:
            self.result = DYING_MSG
        elif any_failure:
            self.result = COUGHING_MSG
        else:
            self.result = HEALTHY_MSG

        self._closed = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization; ``is_ok`` stays internal."""
        return {
            "items": [item.to_dict() for item in self.items],
            "result": self.result,
        }


class HealthCheckService:
    """
    Service for checking the health of the service and its dependencies.

    Attributes:
        probes: The registered dependency probes
        check_timeout: Timeout in seconds for each probe (default: 5.0)
        telemetry: Telemetry service used for spans and metrics
    """

    def __init__(
        self,
        probes: Sequence[DependencyProbe],
        check_timeout: float = 5.0,
        telemetry: Optional[TelemetryService] = None,
    ):
        self.probes = list(probes)
        self.check_timeout = check_timeout
        self.telemetry = telemetry

    def _span(self, name: str):
        if self.telemetry is None:
            return NoOpSpan()
        return self.telemetry.create_span(name)

    async def check_liveness(self) -> None:
        """Liveness check: the process is running. Dependencies are not probed."""
        with self._span(API_HEALTH_CHECK_OPERATION):
            return None

    async def check_readiness(self) -> InfrastructureHealthResult:
        """
        Probe every dependency concurrently and aggregate the results.

        Returns:
            InfrastructureHealthResult: Closed result with one item per probe
        """
        with self._span(INFRASTRUCTURE_HEALTH_CHECK_OPERATION):
            health_result = InfrastructureHealthResult()

            await asyncio.gather(*(self._run_probe(probe, health_result) for probe in self.probes))

            health_result.examine_health()

            if not health_result.is_ok:
                logger.warning(
                    "Infrastructure health check failed",
                    extra={"extra_data": {
                        "result": health_result.result,
                        "unhealthy": [item.name for item in health_result.items if not item.is_healthy],
                    }}
                )
            return health_result

    async def _check(self, probe: DependencyProbe) -> Tuple[bool, str]:
        """
        Await ``probe.check`` and return ``(is_healthy, remarks)``.

        Exceptions raised by the probe itself, a ``TimeoutError`` from its
        own socket included, are faults of that probe and never reach the
        ``wait_for`` deadline handling in ``_run_probe``.
        """
        try:
            is_ok, err = await probe.check()
        except Exception as e:
            logger.error(
                "Health probe raised an unexpected exception",
                exc_info=True,
                extra={"extra_data": {"dependency": probe.name}}
            )
            return False, f"{probe.name} health check failed unexpectedly: {type(e).__name__}: {e}"

        if not is_ok and err is not None:
            return False, str(err)
        return bool(is_ok), ""

    async def _run_probe(self, probe: DependencyProbe, health_result: InfrastructureHealthResult) -> None:
        """
        Run one probe and record exactly one item for it.

        Timeouts and unexpected exceptions are turned into unhealthy items so
        the join in check_readiness always completes. Cancellation is not
        caught and reaches the caller.
        """
        start_time = time.perf_counter()

        try:
            is_ok, remarks = await asyncio.wait_for(self._check(probe), timeout=self.check_timeout)
        except asyncio.TimeoutError:
            is_ok = False
            remarks = f"{probe.name} health check timed out after {self.check_timeout} seconds"
            logger.warning(remarks)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if self.telemetry is not None:
            self.telemetry.record_metric(
                "health_check_duration_ms",
                elapsed_ms,
                tags={"dependency": probe.name, "healthy": str(bool(is_ok)).lower()},
            )

        await health_result.add_item(DependencyCheckItem(
            name=probe.name,
            is_healthy=bool(is_ok),
            dependency_type=probe.dependency_type,
            remarks=remarks,
        ))
