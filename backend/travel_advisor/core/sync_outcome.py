"""Sync Outcomes — named results of syncing one city.

Invariants:
    - SyncResult carries both the saved advisory and its AuditType (never a bare tuple)
    - SyncFailure carries the city that failed and the typed error; it is a value, not raised
    - SyncOutcome is the tagged union consumed by bulk refresh paths
"""

from dataclasses import dataclass

from travel_advisor.core.domain_types import AuditType
from travel_advisor.core.errors import AdvisorError
from travel_advisor.core.snapshots import TravelAdvisory


@dataclass(frozen=True)
class SyncResult:
    advisory: TravelAdvisory
    audit: AuditType

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class SyncFailure:
    city: str
    error: AdvisorError

    @property
    def ok(self) -> bool:
        return False


SyncOutcome = SyncResult | SyncFailure
