"""
Dependency probes used by the infrastructure health check.

A probe answers one question, "is this dependency reachable?", through a
single ``check`` coroutine returning ``(is_ok, error)``. A dependency that
answered badly is a *negative result* and is returned; anything the probe
did not expect is raised and left to the aggregator to contain.
"""

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Optional, Protocol, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from database.connection import ping
from telemetry.service import NoOpSpan, TelemetryService

logger = logging.getLogger(__name__)

MASTER_DATABASE_PROBE_NAME = "Master Database SQL"
SLAVE_DATABASE_PROBE_NAME = "Slave Database SQL"

HEALTH_CHECK_MASTER_DB_OPERATION = "repository.healthcheck.master_db"
HEALTH_CHECK_SLAVE_DB_OPERATION = "repository.healthcheck.slave_db"

PROBE_EXECUTOR_WORKERS = 4
PROBE_THREAD_NAME_PREFIX = "health-probe"


class DependencyType(str, Enum):
    """How much the service relies on a dependency."""
    HARD = "hard"
    SOFT = "soft"


class DependencyProbe(Protocol):
    """
    Capability interface for a health probe.

    Attributes:
        name: Human-readable dependency name shown in the health report
        dependency_type: Whether a failure makes the service unhealthy (hard)
            or only degraded (soft)
    """
    name: str
    dependency_type: DependencyType

    async def check(self) -> Tuple[bool, Optional[Exception]]:
        ...


class DatabaseProbe:
    """
    Probe that pings a SQL database engine with ``SELECT 1``.

    The ping runs on ``executor`` (the loop default when None). When the
    aggregator's timeout fires, the awaiting coroutine is cancelled right
    away but the worker thread only returns once the driver gives up.
    In the service the executor comes from ``create_probe_executor`` and is
    never the default pool the repositories run on.
    """

    def __init__(
        self,
        name: str,
        engine: Engine,
        dependency_type: DependencyType = DependencyType.HARD,
        operation: Optional[str] = None,
        telemetry: Optional[TelemetryService] = None,
        executor: Optional[Executor] = None,
    ):
        self.name = name
        self.engine = engine
        self.dependency_type = dependency_type
        self.operation = operation or f"repository.healthcheck.{name.lower().replace(' ', '_')}"
        self.telemetry = telemetry
        self.executor = executor

    def _span(self):
        if self.telemetry is None:
            return NoOpSpan()
        return self.telemetry.create_span(self.operation, {"dependency.name": self.name})

    async def check(self) -> Tuple[bool, Optional[Exception]]:
        with self._span():
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(self.executor, ping, self.engine)
            except SQLAlchemyError as e:
                logger.warning(
                    "%s ping failed: %s", self.name, e,
                    extra={"extra_data": {"dependency": self.name}}
                )
                return False, e
            return True, None

    def __repr__(self) -> str:
        return f"DatabaseProbe(name={self.name!r}, dependency_type={self.dependency_type.value!r})"


def build_database_probes(
    master_db: Optional[Engine],
    slave_db: Optional[Engine],
    telemetry: Optional[TelemetryService] = None,
    executor: Optional[Executor] = None,
) -> list[DatabaseProbe]:
    """
    Build the master and slave database probes, both hard dependencies,
    sharing ``executor`` for their pings.

    Raises:
        ValueError: If either engine is missing.
    """
    if master_db is None:
        raise ValueError("the master database connection is missing")

    if slave_db is None:
        raise ValueError("the slave database connection is missing")

    return [
        DatabaseProbe(
            MASTER_DATABASE_PROBE_NAME,
            master_db,
            DependencyType.HARD,
            operation=HEALTH_CHECK_MASTER_DB_OPERATION,
            telemetry=telemetry,
            executor=executor,
        ),
        DatabaseProbe(
            SLAVE_DATABASE_PROBE_NAME,
            slave_db,
            DependencyType.HARD,
            operation=HEALTH_CHECK_SLAVE_DB_OPERATION,
            telemetry=telemetry,
            executor=executor,
        ),
    ]


def create_probe_executor(max_workers: int = PROBE_EXECUTOR_WORKERS) -> ThreadPoolExecutor:
    """Thread pool reserved for probe pings; the caller shuts it down."""
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=PROBE_THREAD_NAME_PREFIX)
