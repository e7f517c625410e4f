"""Advisory Queries — read, search and delete over the stored advisories.

Invariants:
    - Every city argument is normalized before it touches the store
    - fetch(city=...) returns [] for an unknown city, never raises not-found
    - delete_city() is idempotent; delete_country() reports how many rows went away
    - search bounds are inclusive; min > max is an InvalidRangeError
"""

import logging

from travel_advisor.core.errors import InvalidRangeError
from travel_advisor.core.normalize_city import require_city_key
from travel_advisor.core.reconcile import matches_country, temperature_between
from travel_advisor.core.repository_protocols import AdvisoryStore
from travel_advisor.core.snapshots import TravelAdvisory

logger = logging.getLogger(__name__)


class AdvisoryQueries:
    def __init__(self, store: AdvisoryStore):
        self.store = store

    async def fetch(
        self, city: str | None = None, country: str | None = None,
    ) -> list[TravelAdvisory]:
        """City wins over country; neither lists everything."""
        if city is not None:
            advisory = await self.store.find_by_id(require_city_key(city))
            return [advisory] if advisory else []
        if country:
            return [
                a async for a in self.store.find_all_filtered(
                    lambda a: matches_country(a, country),
                )
            ]
        return [a async for a in self.store.find_all()]

    async def search_by_temperature(
        self, low: float, high: float,
    ) -> list[TravelAdvisory]:
        if low > high:
            raise InvalidRangeError(low, high)
        return [
            a async for a in self.store.find_all_filtered(
                lambda a: temperature_between(a, low, high),
            )
        ]

    async def delete_city(self, city: str) -> None:
        key = require_city_key(city)
        await self.store.delete_by_id(key)
        logger.info(f"Deleted advisory for {key}", extra={"city": key})

    async def delete_country(self, country: str) -> int:
        keys = [a.key async for a in self.store.find_all_filtered(
            lambda a: matches_country(a, country),
        )]
        deleted = await self.store.delete_by_keys(keys)
        logger.info(
            f"Deleted {deleted} advisories for {country}",
            extra={"country": country, "count": deleted},
        )
        return deleted
