"""
Base repository routing writes to the master and reads to the slave.

SQLAlchemy's engine API is synchronous, so each statement runs in the
default executor to keep the event loop free.
"""

import asyncio
import functools
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.sql import Executable

from errors.exceptions import database_unavailable
from telemetry.service import NoOpSpan, TelemetryService

EXEC_OPERATION = "repository.base.exec"
FETCH_ROW_OPERATION = "repository.base.fetch_row"
FETCH_ROWS_OPERATION = "repository.base.fetch_rows"


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a write statement."""
    rowcount: int
    last_insert_id: Optional[int]


class BaseRepository:
    """
    Shared statement helpers for repositories.

    Attributes:
        master_db: Engine used for writes
        slave_db: Engine used for reads
    """

    def __init__(
        self,
        master_db: Optional[Engine],
        slave_db: Optional[Engine],
        telemetry: Optional[TelemetryService] = None,
    ):
        self.master_db = master_db
        self.slave_db = slave_db
        self.telemetry = telemetry

    def _span(self, name: str):
        if self.telemetry is None:
            return NoOpSpan()
        return self.telemetry.create_span(name)

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    async def exec(self, statement: Executable, params: Optional[Mapping[str, Any]] = None) -> ExecResult:
        """Execute a write statement on the master inside a transaction."""
        with self._span(EXEC_OPERATION):
            if self.master_db is None:
                raise database_unavailable("the master database connection is not configured")
            return await self._run(_exec, self.master_db, statement, params)

    async def fetch_rows(self, statement: Executable, params: Optional[Mapping[str, Any]] = None) -> list[dict]:
        """Fetch every row of a query from the slave."""
        with self._span(FETCH_ROWS_OPERATION):
            if self.slave_db is None:
                raise database_unavailable("the slave database connection is not configured")
            return await self._run(_fetch_rows, self.slave_db, statement, params)

    async def fetch_row(self, statement: Executable, params: Optional[Mapping[str, Any]] = None) -> Optional[dict]:
        """Fetch the first row of a query from the slave, or None."""
        with self._span(FETCH_ROW_OPERATION):
            if self.slave_db is None:
                raise database_unavailable("the slave database connection is not configured")
            return await self._run(_fetch_row, self.slave_db, statement, params)


def _exec(engine: Engine, statement: Executable, params: Optional[Mapping[str, Any]]) -> ExecResult:
    with engine.begin() as connection:
        result = connection.execute(statement, params or {})
        return ExecResult(rowcount=result.rowcount, last_insert_id=result.lastrowid)


def _fetch_rows(engine: Engine, statement: Executable, params: Optional[Mapping[str, Any]]) -> list[dict]:
    with engine.connect() as connection:
        return [dict(row) for row in connection.execute(statement, params or {}).mappings()]


def _fetch_row(engine: Engine, statement: Executable, params: Optional[Mapping[str, Any]]) -> Optional[dict]:
    with engine.connect() as connection:
        row = connection.execute(statement, params or {}).mappings().first()
        return dict(row) if row is not None else None
