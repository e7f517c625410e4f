"""Refresh Orchestrator — union reconciliation, bounded fan-out, batches and isolation.

Tests:
    - Country refresh syncs dedup(stored ∪ discovered), each key once
    - Discovery falls back to capitals; lookup/store failures degrade to empty
    - Global refresh covers every stored key with the concurrency cap honoured
    - Batches run strictly in order and cover every key exactly once
    - One failing city never stops the others
"""

import asyncio
import weakref

import httpx
import pytest

from travel_advisor.core.domain_types import AuditType
from travel_advisor.core.errors import CityValidationError
from travel_advisor.infrastructure.http_client import ResilientHttpClient
from travel_advisor.infrastructure.weather_client import OpenWeatherClient
from travel_advisor.services.refresh_orchestrator import (
    RefreshConfig, RefreshOrchestrator,
)
from travel_advisor.services.sync_pipeline import SyncPipeline
from tests.fakes import (
    FakeCountries, FakeDiscovery, FakeWeather, InMemoryStore,
    make_advisory, make_country,
)

UK = make_country("United Kingdom", "GB", ("London",))
FRANCE = make_country("France", "FR", ("Paris",))
WEATHER_BODY = {
    "weather": [{"main": "Clouds", "description": "few clouds"}],
    "main": {"temp": 12.0, "feels_like": 11.0, "humidity": 70},
    "wind": {"speed": 4.0},
    "sys": {"country": "GB", "sunrise": 1704095400, "sunset": 1704123900},
    "timezone": 0,
}


def build(
    store=None, weather=None, countries=None, discovery=None, config=None,
) -> tuple[RefreshOrchestrator, FakeWeather]:
    store = store if store is not None else InMemoryStore()
    weather = weather or FakeWeather()
    countries = countries or FakeCountries([UK, FRANCE])
    pipeline = SyncPipeline(store, weather, countries)
    orchestrator = RefreshOrchestrator(
        pipeline, store, countries, discovery or FakeDiscovery(), config,
    )
    return orchestrator, weather


async def collect(results):
    return [r async for r in results]


# ─── Config ──────────────────────────────────────────────────────

def test_config_defaults():
    config = RefreshConfig()
    assert (config.concurrency, config.top_n, config.batch_size) == (5, 10, 5)


@pytest.mark.parametrize("field", ["concurrency", "top_n", "batch_size"])
def test_config_rejects_non_positive(field):
    with pytest.raises(ValueError):
        RefreshConfig(**{field: 0})


# ─── Single city ─────────────────────────────────────────────────

async def test_refresh_city_propagates_errors():
    orchestrator, _ = build()
    with pytest.raises(CityValidationError):
        await orchestrator.refresh_city("??")


async def test_refresh_city_reports_audit():
    orchestrator, _ = build()
    assert (await orchestrator.refresh_city("Leeds")).audit is AuditType.CREATED
    assert (await orchestrator.refresh_city("LEEDS")).audit is AuditType.UPDATED


# ─── Country ─────────────────────────────────────────────────────

async def test_country_refresh_syncs_union_once_per_key():
    store = InMemoryStore([
        make_advisory("London"), make_advisory("Leeds"), make_advisory("Lyon", country="France"),
    ])
    discovery = FakeDiscovery({"GB": ["London", "Birmingham", "leeds", "Glasgow"]})
    orchestrator, weather = build(store=store, discovery=discovery)

    results = await collect(orchestrator.refresh_country("united kingdom"))

    synced = sorted(r.advisory.key for r in results)
    assert synced == ["birmingham", "glasgow", "leeds", "london"]
    assert sorted(c.lower() for c in weather.calls) == synced
    assert discovery.calls == [("GB", 10)]
    audits = {r.advisory.key: r.audit for r in results}
    assert audits["london"] is AuditType.UPDATED
    assert audits["birmingham"] is AuditType.CREATED


async def test_country_refresh_drops_unnormalizable_names():
    discovery = FakeDiscovery({"GB": ["St. Albans", "Bath"]})
    orchestrator, _ = build(discovery=discovery)
    results = await collect(orchestrator.refresh_country("United Kingdom"))
    assert [r.advisory.key for r in results] == ["bath"]


async def test_country_refresh_falls_back_to_capitals():
    orchestrator, _ = build(discovery=FakeDiscovery())
    results = await collect(orchestrator.refresh_country("France"))
    assert [r.advisory.city for r in results] == ["Paris"]


async def test_country_lookup_failure_still_refreshes_stored():
    store = InMemoryStore([make_advisory("Leeds")])
    countries = FakeCountries([UK], fail_by_name=True)
    orchestrator, _ = build(store=store, countries=countries)

    results = await collect(orchestrator.refresh_country("United Kingdom"))
    assert [r.advisory.key for r in results] == ["leeds"]


async def test_store_failure_still_refreshes_discovered():
    store = InMemoryStore([make_advisory("Leeds")])
    store.fail_reads = True
    discovery = FakeDiscovery({"GB": ["Bristol"]})
    orchestrator, _ = build(store=store, discovery=discovery)

    results = await collect(orchestrator.refresh_country("United Kingdom"))
    assert [r.advisory.key for r in results] == ["bristol"]


async def test_country_refresh_gathers_sources_concurrently():
    started = []

    class SlowDiscovery(FakeDiscovery):
        async def top_cities(self, country_code, limit):
            started.append("discovery")
            await asyncio.sleep(0.01)
            return ["York"]

    class SlowStore(InMemoryStore):
        async def find_all(self):
            started.append("store")
            await asyncio.sleep(0.01)
            # discovery must already be underway
            assert "discovery" in started
            for advisory in self.data.values():
                yield advisory

    orchestrator, _ = build(store=SlowStore(), discovery=SlowDiscovery())
    results = await collect(orchestrator.refresh_country("United Kingdom"))
    assert [r.advisory.key for r in results] == ["york"]


# ─── Global ──────────────────────────────────────────────────────

async def test_refresh_all_covers_every_key_within_bound():
    cities = ["Bath", "Bristol", "Leeds", "London", "Oxford", "York", "Derby", "Hull"]
    store = InMemoryStore([make_advisory(c) for c in cities])
    weather = FakeWeather(delay=0.005)
    orchestrator, _ = build(store=store, weather=weather, config=RefreshConfig(concurrency=3))

    results = await collect(orchestrator.refresh_all())

    assert sorted(r.advisory.key for r in results) == sorted(c.lower() for c in cities)
    assert weather.peak_in_flight == 3
    assert all(r.audit is AuditType.UPDATED for r in results)


async def test_refresh_all_isolates_failures():
    store = InMemoryStore([make_advisory(c) for c in ["Bath", "Hull", "York"]])
    weather = FakeWeather(failing=["Hull"])
    orchestrator, _ = build(store=store, weather=weather)

    results = await collect(orchestrator.refresh_all())
    assert sorted(r.advisory.key for r in results) == ["bath", "york"]


async def test_refresh_all_survives_undecodable_weather_body():
    def handler(request):
        if request.url.params["q"] == "Hull":
            return httpx.Response(
                200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"garbage"),
            )
        return httpx.Response(200, json=WEATHER_BODY)

    http = ResilientHttpClient(
        "openweathermap", "https://api.test", max_retries=0,
        transport=httpx.MockTransport(handler),
    )
    store = InMemoryStore([make_advisory(c) for c in ["Bath", "Hull", "York"]])
    countries = FakeCountries([UK])
    pipeline = SyncPipeline(store, OpenWeatherClient(http, "k"), countries)
    orchestrator = RefreshOrchestrator(pipeline, store, countries, FakeDiscovery())

    results = await collect(orchestrator.refresh_all())

    assert sorted(r.advisory.key for r in results) == ["bath", "york"]
    await http.aclose()


async def test_refresh_all_on_empty_store():
    orchestrator, weather = build()
    assert await collect(orchestrator.refresh_all()) == []
    assert weather.calls == []


# ─── Batched ─────────────────────────────────────────────────────

@pytest.mark.parametrize("batch_size", [1, 2, 3, 7, 50])
async def test_batches_cover_every_key_exactly_once(batch_size):
    cities = ["Bath", "Bristol", "Derby", "Hull", "Leeds", "Oxford", "York"]
    store = InMemoryStore([make_advisory(c) for c in cities])
    orchestrator, weather = build(store=store)

    results = await collect(orchestrator.refresh_all_in_batches(batch_size, 2))

    assert sorted(r.advisory.key for r in results) == [c.lower() for c in cities]
    assert sorted(weather.calls) == cities


async def test_batches_run_strictly_in_sequence():
    cities = ["Bath", "Bristol", "Derby", "Hull", "Leeds"]
    store = InMemoryStore([make_advisory(c) for c in cities])
    weather = FakeWeather(delay=0.005)
    orchestrator, _ = build(store=store, weather=weather)

    order = [r.advisory.key async for r in orchestrator.refresh_all_in_batches(2, 2)]

    # Store lists keys in order, so batches are {bath, bristol}, {derby, hull}, {leeds}
    assert set(order[:2]) == {"bath", "bristol"}
    assert set(order[2:4]) == {"derby", "hull"}
    assert order[4] == "leeds"
    assert weather.peak_in_flight == 2


async def test_failing_city_does_not_stop_later_batches():
    store = InMemoryStore([make_advisory(c) for c in ["Bath", "Hull", "York"]])
    weather = FakeWeather(failing=["Bath"])
    orchestrator, _ = build(store=store, weather=weather)

    results = await collect(orchestrator.refresh_all_in_batches(1, 1))
    assert [r.advisory.key for r in results] == ["hull", "york"]


@pytest.mark.parametrize("batch_size, concurrency", [(0, 1), (1, 0), (-2, 3)])
async def test_batches_reject_non_positive_sizes(batch_size, concurrency):
    orchestrator, _ = build(store=InMemoryStore([make_advisory("Bath")]))
    with pytest.raises(ValueError):
        await collect(orchestrator.refresh_all_in_batches(batch_size, concurrency))


async def test_batches_default_to_config():
    store = InMemoryStore([make_advisory(c) for c in ["Bath", "Hull", "York"]])
    weather = FakeWeather(delay=0.005)
    orchestrator, _ = build(
        store=store, weather=weather, config=RefreshConfig(concurrency=1, batch_size=2),
    )
    assert len(await collect(orchestrator.refresh_all_in_batches())) == 3
    assert weather.peak_in_flight == 1


# ─── Dispatch ────────────────────────────────────────────────────

async def test_refresh_dispatch():
    store = InMemoryStore([make_advisory("Lyon", country="France"), make_advisory("Leeds")])
    orchestrator, _ = build(store=store)

    assert [r.advisory.key for r in await collect(orchestrator.refresh(city="Bath"))] == ["bath"]
    by_country = await collect(orchestrator.refresh(country="France"))
    assert sorted(r.advisory.key for r in by_country) == ["lyon", "paris"]
    everything = await collect(orchestrator.refresh())
    assert sorted(r.advisory.key for r in everything) == ["bath", "leeds", "lyon", "paris"]


async def test_refresh_dispatch_blank_city_is_validation_error():
    store = InMemoryStore([make_advisory("Leeds")])
    orchestrator, weather = build(store=store)

    with pytest.raises(CityValidationError, match="City is required"):
        await collect(orchestrator.refresh(city=""))
    assert weather.calls == []


class StreamingStore(InMemoryStore):
    """Builds each stored record on demand and counts how many are still alive."""

    def __init__(self, cities):
        super().__init__()
        self.cities = cities
        self.live = 0
        self.peak_live = 0

    def _released(self):
        self.live -= 1

    async def find_all(self):
        for city in self.cities:
            advisory = make_advisory(city)
            self.live += 1
            self.peak_live = max(self.peak_live, self.live)
            weakref.finalize(advisory, self._released)
            yield advisory
            del advisory


@pytest.mark.parametrize("use_batches", [False, True])
async def test_global_refresh_does_not_hold_every_stored_record(use_batches):
    cities = [f"Town{chr(ord('a') + i)}" for i in range(20)]
    store = StreamingStore(cities)
    orchestrator, weather = build(store=store)

    if use_batches:
        results = await collect(orchestrator.refresh_all_in_batches(batch_size=5))
    else:
        results = await collect(orchestrator.refresh_all())

    assert len(results) == 20
    assert store.peak_live <= 2
