"""Refresh Orchestrator — decides which cities a refresh touches and drives the syncs.

Invariants:
    - Every multi-city path dedupes by CityKey first: no key is synced twice per run
    - Multi-city paths isolate failures: a failing city is logged and absent from
      the results, it never aborts the run
    - refresh_city() is the only path that lets errors propagate
    - Batches run strictly one after another; inside a batch at most `concurrency`
      syncs are in flight
    - The store is re-read on every run (no cached work sets between runs)

Design Decisions:
    - Stored set and discovered names are gathered concurrently for country refresh;
      either side failing degrades to an empty contribution, never an error
    - Discovery falls back to the country's capitals when GeoNames yields nothing
    - Results are async iterators in completion order so the API and the scheduler
      can stream/count without holding the whole run in memory
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from travel_advisor.config import Settings
from travel_advisor.core.domain_types import RefreshScope
from travel_advisor.core.errors import AdvisorError
from travel_advisor.core.reconcile import (
    WorkSet, add_names, chunk, matches_country,
)
from travel_advisor.core.repository_protocols import (
    AdvisoryStore, CityDiscovery, CountryLookup,
)
from travel_advisor.core.snapshots import TravelAdvisory
from travel_advisor.core.sync_outcome import SyncResult
from travel_advisor.services.bounded_pool import bounded_map
from travel_advisor.services.sync_pipeline import SyncPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshConfig:
    """Tuning knobs for multi-city refreshes."""
    concurrency: int = 5
    top_n: int = 10
    batch_size: int = 5

    def __post_init__(self):
        for name in ("concurrency", "top_n", "batch_size"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshConfig":
        return cls(
            concurrency=settings.cities_concurrency,
            top_n=settings.cities_top_n,
            batch_size=settings.scheduler_batch_size,
        )


class RefreshOrchestrator:
    """Single, country-scoped, global and batched-global reconciliation."""

    def __init__(
        self,
        pipeline: SyncPipeline,
        store: AdvisoryStore,
        countries: CountryLookup,
        discovery: CityDiscovery,
        config: RefreshConfig | None = None,
    ):
        self.pipeline = pipeline
        self.store = store
        self.countries = countries
        self.discovery = discovery
        self.config = config or RefreshConfig()

    # ─── Single city ─────────────────────────────────────────────

    async def refresh_city(self, city: str) -> SyncResult:
        return await self.pipeline.sync_city_with_audit(city)

    # ─── Country scoped ──────────────────────────────────────────

    async def refresh_country(self, country: str) -> AsyncIterator[SyncResult]:
        stored, discovered = await asyncio.gather(
            self._stored_for_country(country),
            self._discover_cities(country),
        )
        stored_count = len(stored)
        work = add_names(stored, discovered)
        for rejected in work.rejected:
            logger.warning(
                f"Dropping discovered city that failed validation: {rejected!r}",
                extra={"country": country},
            )
        logger.info(
            f"Country refresh for {country}: {stored_count} stored, "
            f"{len(discovered)} discovered, {len(work)} to sync",
            extra={"country": country, "count": len(work), "scope": RefreshScope.COUNTRY.value},
        )
        async for result in self._sync_work(work, self.config.concurrency):
            yield result

    async def _stored_for_country(self, country: str) -> WorkSet:
        try:
            return await self._stored_work_set(
                self.store.find_all_filtered(lambda a: matches_country(a, country)),
            )
        except AdvisorError as e:
            logger.warning(
                f"Reading stored advisories for {country} failed: {e.message}",
                extra={"country": country, "error_code": e.code},
            )
            return WorkSet()

    async def _discover_cities(self, country: str) -> list[str]:
        """Top cities by population, falling back to capitals. Never raises."""
        try:
            report = await self.countries.by_name(country)
        except AdvisorError as e:
            logger.warning(
                f"Country lookup for {country} failed: {e.message}",
                extra={"country": country, "error_code": e.code},
            )
            return []

        names: list[str] = []
        if report.code:
            names = await self.discovery.top_cities(report.code, self.config.top_n)
        if not names:
            logger.info(
                f"No discovered cities for {country}, using capitals",
                extra={"country": country},
            )
            names = list(report.capitals)
        return names

    # ─── Global ──────────────────────────────────────────────────

    async def refresh_all(self) -> AsyncIterator[SyncResult]:
        work = await self._stored_work_set(self.store.find_all())
        logger.info(
            f"Global refresh of {len(work)} cities",
            extra={"count": len(work), "scope": RefreshScope.GLOBAL.value},
        )
        async for result in self._sync_work(work, self.config.concurrency):
            yield result

    async def refresh_all_in_batches(
        self, batch_size: int | None = None, concurrency: int | None = None,
    ) -> AsyncIterator[SyncResult]:
        batch_size = self.config.batch_size if batch_size is None else batch_size
        concurrency = self.config.concurrency if concurrency is None else concurrency
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")

        work = await self._stored_work_set(self.store.find_all())
        batches = list(chunk(work.members.items(), batch_size))
        logger.info(
            f"Batched refresh of {len(work)} cities in {len(batches)} batches",
            extra={"count": len(work), "scope": RefreshScope.BATCHED.value},
        )
        for number, batch in enumerate(batches, start=1):
            synced = 0
            async for result in self._sync_work(WorkSet(dict(batch)), concurrency):
                synced += 1
                yield result
            logger.info(
                f"Batch {number}/{len(batches)} done: {synced}/{len(batch)} synced",
                extra={"batch": number, "count": synced},
            )

    async def _stored_work_set(self, advisories: AsyncIterator[TravelAdvisory]) -> WorkSet:
        """Keys and display names only; records are dropped as the store pages through."""
        work = WorkSet()
        async for advisory in advisories:
            work.add_stored(advisory)
        return work

    # ─── Dispatch ────────────────────────────────────────────────

    async def refresh(
        self, city: str | None = None, country: str | None = None,
    ) -> AsyncIterator[SyncResult]:
        """City wins over country; neither means a global refresh."""
        if city is not None:
            yield await self.refresh_city(city)
        elif country:
            async for result in self.refresh_country(country):
                yield result
        else:
            async for result in self.refresh_all():
                yield result

    async def _sync_work(
        self, work: WorkSet, concurrency: int,
    ) -> AsyncIterator[SyncResult]:
        async for outcome in bounded_map(
            work.members.values(), self.pipeline.try_sync, concurrency,
        ):
            if isinstance(outcome, SyncResult):
                yield outcome
