"""
SQLAlchemy engines for the master (write) and slave (read) databases.

Engines are long-lived and shared by the whole process. The health probes
only ever run a liveness statement on them; they never dispose them.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

PING_STATEMENT = text("SELECT 1")


class DatabaseConnectionError(Exception):
    """
    Raised when a database cannot be reached after all startup attempts.

    Attributes:
        name: Which connection failed ("master" or "slave")
        attempts: Number of attempts made
        last_exception: The driver error of the final attempt
    """

    def __init__(self, name: str, attempts: int, last_exception: Exception):
        self.name = name
        self.attempts = attempts
        self.last_exception = last_exception
        super().__init__(
            f"Could not connect to the {name} database after {attempts} attempts: {last_exception}"
        )


@dataclass
class DatabaseConnections:
    """The pair of engines every repository is built from."""
    master: Engine
    slave: Engine

    def dispose(self) -> None:
        """Close the pools of both engines."""
        self.master.dispose()
        if self.slave is not self.master:
            self.slave.dispose()


def create_database_engine(
    url: str,
    pool_size: int = 5,
    pool_recycle: int = 3600,
    echo: bool = False,
    driver_timeout: Optional[float] = None,
) -> Engine:
    """
    Create an engine for ``url``.

    SQLite URLs (used for local runs and tests) get a single shared
    connection usable from the executor threads; server databases get a
    recycled, pre-pinged connection pool.

    ``driver_timeout`` bounds connect, read and write on PyMySQL sockets
    (rounded up to whole seconds), so a blocked call cannot hold its
    executor thread forever when the server stops answering.
    """
    options: dict = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        options["poolclass"] = StaticPool
    else:
        options["pool_size"] = pool_size
        options["pool_recycle"] = pool_recycle
        if driver_timeout is not None and make_url(url).get_driver_name() == "pymysql":
            seconds = max(1, math.ceil(driver_timeout))
            options["connect_args"] = {
                "connect_timeout": seconds,
                "read_timeout": seconds,
                "write_timeout": seconds,
            }
    return create_engine(url, **options)


def ping(engine: Engine) -> None:
    """
    Run the liveness statement on ``engine``.

    Raises:
        SQLAlchemyError: If the database cannot be reached.
    """
    with engine.connect() as connection:
        connection.execute(PING_STATEMENT)


async def connect_engine(
    name: str,
    url: str,
    attempts: int = 3,
    pool_size: int = 5,
    initial_delay: float = 1.0,
    driver_timeout: Optional[float] = None,
) -> Engine:
    """
    Create an engine and wait until it answers a ping.

    Failed pings are retried with exponential backoff (1s, 2s, 4s, ...).

    Raises:
        DatabaseConnectionError: When every attempt failed.
    """
    engine = create_database_engine(url, pool_size=pool_size, driver_timeout=driver_timeout)
    loop = asyncio.get_running_loop()

    for attempt in range(attempts):
        try:
            await loop.run_in_executor(None, ping, engine)
        except SQLAlchemyError as e:
            if attempt == attempts - 1:
                engine.dispose()
                logger.error(
                    "Giving up on %s database after %d attempts: %s",
                    name, attempts, e,
                    extra={"extra_data": {"database": name, "attempts": attempts}}
                )
                raise DatabaseConnectionError(name, attempts, e) from e

            delay = initial_delay * (2 ** attempt)
            logger.warning(
                "Connection attempt %d/%d to %s database failed: %s. Retrying in %.2f seconds...",
                attempt + 1, attempts, name, e, delay,
                extra={"extra_data": {"database": name, "attempt": attempt + 1, "delay_seconds": delay}}
            )
            await asyncio.sleep(delay)
        else:
            logger.info("Connected to %s database", name, extra={"extra_data": {"database": name}})
            return engine

    raise ValueError("attempts must be at least 1")


async def build_connections(settings) -> DatabaseConnections:
    """
    Connect the master and slave engines described by ``settings``.

    Both connections are opened concurrently. If one fails, the other is
    disposed before the error propagates.
    """
    results = await asyncio.gather(
        connect_engine(
            "master",
            settings.master_database_url,
            attempts=settings.database_connect_attempts,
            pool_size=settings.database_pool_size,
            driver_timeout=settings.health_check_timeout,
        ),
        connect_engine(
            "slave",
            settings.slave_database_url,
            attempts=settings.database_connect_attempts,
            pool_size=settings.database_pool_size,
            driver_timeout=settings.health_check_timeout,
        ),
        return_exceptions=True,
    )

    failures = [result for result in results if isinstance(result, BaseException)]
    if failures:
        for result in results:
            if isinstance(result, Engine):
                result.dispose()
        raise failures[0]

    master, slave = results
    return DatabaseConnections(master=master, slave=slave)
