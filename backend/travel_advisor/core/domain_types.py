"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - CityKey is always trimmed, lower-cased and validated (built only by normalize_city)
    - AuditType is transient: describes one sync, never persisted
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CityKey = NewType("CityKey", str)


# ─── Enums ───────────────────────────────────────────────────────

class AuditType(str, Enum):
    """Outcome of a single sync — decided by the pre-write existence check."""
    CREATED = "CREATED"
    UPDATED = "UPDATED"

    @classmethod
    def from_existence(cls, existed: bool) -> "AuditType":
        return cls.UPDATED if existed else cls.CREATED


class ResponseStatus(str, Enum):
    """Top-level status of the API response envelope."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class RefreshScope(str, Enum):
    """Which reconciliation path produced a refresh run (for logs)."""
    CITY = "city"
    COUNTRY = "country"
    GLOBAL = "global"
    BATCHED = "batched"
