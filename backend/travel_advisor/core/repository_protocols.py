"""Boundary Protocols — contracts between core/services and the infrastructure shell.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - WeatherLookup/CountryLookup raise UpstreamError; CityDiscovery never raises
    - AdvisoryStore raises StoreError; save() is an idempotent upsert by key

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the pure functions that consume their results are never async themselves
"""

from collections.abc import AsyncIterator, Callable, Iterable
from typing import Protocol

from travel_advisor.core.snapshots import CountryReport, TravelAdvisory, WeatherReport

AdvisoryPredicate = Callable[[TravelAdvisory], bool]


class AdvisoryStore(Protocol):
    """Contract for advisory persistence — a key-value document store keyed by CityKey."""
    async def exists_by_id(self, key: str) -> bool: ...
    async def find_by_id(self, key: str) -> TravelAdvisory | None: ...
    def find_all(self) -> AsyncIterator[TravelAdvisory]: ...
    def find_all_filtered(
        self, predicate: AdvisoryPredicate,
    ) -> AsyncIterator[TravelAdvisory]: ...
    async def save(self, advisory: TravelAdvisory) -> TravelAdvisory: ...
    async def delete_by_id(self, key: str) -> None: ...
    async def delete_by_keys(self, keys: Iterable[str]) -> int: ...


class WeatherLookup(Protocol):
    """Current weather for a display city name."""
    async def fetch(self, city: str) -> WeatherReport: ...


class CountryLookup(Protocol):
    """Country facts by ISO alpha code or by full-text name."""
    async def by_code(self, code: str) -> CountryReport: ...
    async def by_name(self, name: str) -> CountryReport: ...


class CityDiscovery(Protocol):
    """Population-ranked city names for a country; empty list when unavailable."""
    async def top_cities(self, country_code: str, limit: int) -> list[str]: ...
