"""City Key Normalization — validates a raw city name and turns it into a store key.

Invariants:
    - Rules applied in order: blank → too short (<3 after trim) → non letter/space chars
    - First failing rule wins; its message is the one reported
    - A valid key is the trimmed name, lower-cased
    - normalize_city(normalize_city(x).key) == normalize_city(x) for every valid x

Design Decisions:
    - Result-style return (CityKeyResult | CityKeyError): callers branch explicitly,
      no unwind-based control flow inside bulk paths
    - require_city_key() is the raising variant for imperative call sites (API, single sync)
"""

import re
from dataclasses import dataclass

from travel_advisor.core.domain_types import CityKey
from travel_advisor.core.errors import CityValidationError, ErrorContext

MIN_CITY_LENGTH = 3
_CITY_PATTERN = re.compile(r"[A-Za-z ]+")

CITY_REQUIRED = "City is required"
CITY_TOO_SHORT = "City name too short"
CITY_BAD_CHARS = "City must contain only letters and spaces"


@dataclass(frozen=True)
class CityKeyResult:
    """Successful normalization."""
    key: CityKey
    display_name: str


@dataclass(frozen=True)
class CityKeyError:
    """Rejected input with the reason."""
    raw: str | None
    message: str


def check_city(raw: str | None) -> str | None:
    """Return the first violated rule's message, or None when the name is valid."""
    if raw is None or not raw.strip():
        return CITY_REQUIRED
    trimmed = raw.strip()
    if len(trimmed) < MIN_CITY_LENGTH:
        return CITY_TOO_SHORT
    if not _CITY_PATTERN.fullmatch(trimmed):
        return CITY_BAD_CHARS
    return None


def normalize_city(raw: str | None) -> CityKeyResult | CityKeyError:
    """Validate and canonicalize *raw* into a CityKey."""
    error = check_city(raw)
    if error:
        return CityKeyError(raw=raw, message=error)
    trimmed = raw.strip()
    return CityKeyResult(key=CityKey(trimmed.lower()), display_name=trimmed)


def require_city_key(raw: str | None) -> CityKey:
    """Raising variant: CityValidationError on any rule violation."""
    result = normalize_city(raw)
    if isinstance(result, CityKeyError):
        raise CityValidationError(result.message, ErrorContext(city=raw))
    return result.key
