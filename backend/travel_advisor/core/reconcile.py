"""Union Reconciliation — pure set logic deciding which cities a refresh touches.

Invariants:
    - Members are keyed by CityKey: a key appears at most once in any work set
    - Stored entries win over discovered ones for the display name of a shared key
    - Discovered names that fail normalization are reported as rejected, never synced
    - Blank discovered names are dropped silently (upstreams pad lists with them)
    - chunk() preserves order and never yields an empty batch
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TypeVar

from travel_advisor.core.domain_types import CityKey
from travel_advisor.core.normalize_city import CityKeyError, normalize_city
from travel_advisor.core.snapshots import TravelAdvisory

T = TypeVar("T")


@dataclass
class WorkSet:
    """Deduplicated cities to sync: key → display name used for the upstream lookup."""
    members: dict[CityKey, str] = field(default_factory=dict)
    rejected: list[str] = field(default_factory=list)

    def add(self, key: CityKey, display_name: str) -> bool:
        """Add unless the key is already present. Returns True when added."""
        if key in self.members:
            return False
        self.members[key] = display_name
        return True

    def add_stored(self, advisory: TravelAdvisory) -> bool:
        """Add a stored advisory by its already-normalized key."""
        return self.add(CityKey(advisory.key), advisory.city)

    @property
    def keys(self) -> set[CityKey]:
        return set(self.members)

    def __len__(self) -> int:
        return len(self.members)


def add_names(work: WorkSet, names: Iterable[str | None]) -> WorkSet:
    """Normalize *names* into *work*; invalid ones land in work.rejected."""
    for name in names:
        if name is None or not name.strip():
            continue
        result = normalize_city(name)
        if isinstance(result, CityKeyError):
            work.rejected.append(name)
            continue
        work.add(result.key, result.display_name)
    return work


def matches_country(advisory: TravelAdvisory, country: str) -> bool:
    """Case-insensitive country-name match (surrounding whitespace ignored)."""
    return advisory.country.name.strip().lower() == country.strip().lower()


def temperature_between(advisory: TravelAdvisory, low: float, high: float) -> bool:
    return low <= advisory.weather.temperature <= high


def chunk(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Split *items* into consecutive lists of at most *size* elements."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    batch: list[T] = []
    for item in items:
        batch.append(item)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch
