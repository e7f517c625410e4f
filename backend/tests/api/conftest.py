"""API test fixtures — FastAPI app with in-memory services behind real routes.

Invariants:
    - Every test gets a fresh InMemoryStore and fake upstreams
    - Lifespan is not run: no database, upstream clients or scheduler are started
    - dependency_overrides cleared after each test

Design Decisions:
    - Override at the service layer (get_queries/get_orchestrator): route tests
      exercise routing, auth, envelopes and error mapping, not SQL
"""

import pytest
from httpx import ASGITransport, AsyncClient

from travel_advisor.api.dependencies import get_orchestrator, get_queries
from travel_advisor.main import app
from travel_advisor.services.advisory_queries import AdvisoryQueries
from travel_advisor.services.refresh_orchestrator import RefreshOrchestrator
from travel_advisor.services.sync_pipeline import SyncPipeline
from tests.fakes import (
    FakeCountries, FakeDiscovery, FakeWeather, InMemoryStore, make_country,
)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def weather():
    return FakeWeather(failing=["Atlantis"])


@pytest.fixture
def api_app(store, weather):
    countries = FakeCountries([make_country(), make_country("France", "FR", ("Paris",))])
    pipeline = SyncPipeline(store, weather, countries)
    orchestrator = RefreshOrchestrator(
        pipeline, store, countries, FakeDiscovery({"GB": ["London", "Leeds"]}),
    )
    app.dependency_overrides[get_queries] = lambda: AdvisoryQueries(store)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(api_app):
    async with AsyncClient(
        transport=ASGITransport(app=api_app), base_url="http://test",
    ) as ac:
        yield ac
