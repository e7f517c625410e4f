"""Advisory Routes — fetch, refresh, search and delete travel advisories.

Invariants:
    - Every route sits behind the bearer gate (router-level dependency)
    - Errors from single-target operations propagate to the global AdvisorError handler
    - Multi-city refresh never fails because one city failed (failures are just absent)

Design Decisions:
    - sync_multi_city_audit toggles between {advisory, audit} items and bare advisories,
      matching what older clients of the refresh endpoint expect
"""

import logging

from fastapi import APIRouter, Depends, Query

from travel_advisor.api.dependencies import (
    get_orchestrator, get_queries, require_bearer_token,
)
from travel_advisor.config import Settings, get_settings
from travel_advisor.schemas.advisory import (
    DeletedCount, envelope, to_advisory_out, to_audited_out,
)
from travel_advisor.services.advisory_queries import AdvisoryQueries
from travel_advisor.services.refresh_orchestrator import RefreshOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/advisories",
    tags=["advisories"],
    dependencies=[Depends(require_bearer_token)],
)


@router.get("")
async def fetch_advisories(
    city: str | None = None,
    country: str | None = None,
    queries: AdvisoryQueries = Depends(get_queries),
):
    """Stored advisories for a city, a country, or all of them."""
    advisories = await queries.fetch(city=city, country=country)
    return envelope([to_advisory_out(a) for a in advisories])


@router.get("/search")
async def search_advisories(
    low: float = Query(alias="min"),
    high: float = Query(alias="max"),
    queries: AdvisoryQueries = Depends(get_queries),
):
    """Stored advisories whose temperature lies in [min, max]."""
    advisories = await queries.search_by_temperature(low, high)
    return envelope([to_advisory_out(a) for a in advisories])


@router.post("/refresh")
async def refresh_advisories(
    city: str | None = None,
    country: str | None = None,
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    if city is not None:
        result = await orchestrator.refresh_city(city)
        return envelope(to_advisory_out(result.advisory), audit=result.audit)

    results = [r async for r in orchestrator.refresh(country=country)]
    logger.info(
        f"Refresh returned {len(results)} advisories",
        extra={"country": country, "count": len(results)},
    )
    if settings.sync_multi_city_audit:
        return envelope([to_audited_out(r) for r in results])
    return envelope([to_advisory_out(r.advisory) for r in results])


@router.delete("")
async def delete_country_advisories(
    country: str = Query(min_length=1),
    queries: AdvisoryQueries = Depends(get_queries),
):
    deleted = await queries.delete_country(country)
    return envelope(
        DeletedCount(country=country, deleted=deleted),
        message=f"Deleted {deleted} advisories for {country}",
    )


@router.delete("/{city}")
async def delete_city_advisory(
    city: str,
    queries: AdvisoryQueries = Depends(get_queries),
):
    await queries.delete_city(city)
    return envelope(message=f"Deleted advisory for {city.strip()}")
