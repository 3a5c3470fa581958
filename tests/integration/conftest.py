"""
Integration test configuration and fixtures.

The full application is built over two SQLite engines pointing at the same
file, standing in for a MySQL master and its replica: writes made through the
master are visible to reads through the slave.
"""
import logging

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from database.connection import DatabaseConnections, create_database_engine
from main import create_app
from movie.repository import create_schema

logger = logging.getLogger(__name__)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(health_check_timeout=2.0)


@pytest.fixture
def connections(sqlite_url):
    master = create_database_engine(sqlite_url)
    slave = create_database_engine(sqlite_url)
    create_schema(master)

    db = DatabaseConnections(master=master, slave=slave)
    yield db
    db.dispose()


@pytest.fixture
def broken_slave_connections(sqlite_url, broken_engine):
    """Healthy master, replica that cannot be reached."""
    master = create_database_engine(sqlite_url)
    create_schema(master)
    yield DatabaseConnections(master=master, slave=broken_engine)
    master.dispose()


@pytest.fixture
def client(test_settings, connections, telemetry):
    app = create_app(test_settings, connections=connections, telemetry=telemetry)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def broken_slave_client(test_settings, broken_slave_connections, telemetry):
    app = create_app(test_settings, connections=broken_slave_connections, telemetry=telemetry)
    return TestClient(app, raise_server_exceptions=False)
