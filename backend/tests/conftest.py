"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real credentials or the scheduler
os.environ.setdefault("WEATHER_API_KEY", "owm-test-fake-key")
os.environ.setdefault("SECURITY_BEARER_TOKEN", "test-token")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)

import pytest

from travel_advisor.infrastructure.advisory_store import SqlAdvisoryStore
from travel_advisor.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def db_manager(tmp_path):
    """Fresh SQLite file database with the schema created."""
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'advisor.db'}")
    await manager.create_all()
    yield manager
    await manager.dispose()


@pytest.fixture
async def sql_store(db_manager):
    return SqlAdvisoryStore(db_manager, page_size=2)
