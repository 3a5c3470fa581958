"""
Database access for the Movie API: master/slave engines and the base repository.
"""

from database.base import BaseRepository, ExecResult
from database.connection import (
    DatabaseConnectionError,
    DatabaseConnections,
    build_connections,
    connect_engine,
    create_database_engine,
    ping,
)

__all__ = [
    "BaseRepository",
    "ExecResult",
    "DatabaseConnectionError",
    "DatabaseConnections",
    "build_connections",
    "connect_engine",
    "create_database_engine",
    "ping",
]
