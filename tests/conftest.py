"""
Shared pytest fixtures and configuration for all tests.
"""
import os

import pytest
from hypothesis import settings, Verbosity, Phase

from database.connection import create_database_engine
from telemetry.service import TelemetryService

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough and reproducible
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples, no shrinking
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

# Fast profile: quick smoke tests
settings.register_profile(
    "fast",
    max_examples=20,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def telemetry() -> TelemetryService:
    """Telemetry service that leaves the root logger alone (keeps caplog working)."""
    return TelemetryService(configure_logging=False)


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    """URL of a throwaway SQLite database file."""
    return f"sqlite:///{tmp_path / 'movies.db'}"


@pytest.fixture
def sqlite_engine(sqlite_url):
    engine = create_database_engine(sqlite_url)
    yield engine
    engine.dispose()


@pytest.fixture
def broken_engine(tmp_path):
    """Engine pointing at a database file that can never be opened."""
    engine = create_database_engine(f"sqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
    yield engine
    engine.dispose()
