"""Advisory Schemas — API response contracts and the SUCCESS envelope.

Invariants:
    - The advisory sentence is computed at response time, never stored
    - Envelope keys with no value are omitted (status is always present)
    - Timestamps serialize as ISO-8601 with offset

Design Decisions:
    - Mappers live next to the DTOs: routes never touch snapshot internals
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from travel_advisor.core.advisory_rules import build_advisory
from travel_advisor.core.domain_types import AuditType, ResponseStatus
from travel_advisor.core.snapshots import TravelAdvisory
from travel_advisor.core.sync_outcome import SyncResult


class WeatherOut(BaseModel):
    description: str
    temperature: float
    feels_like: float
    humidity: int = Field(ge=0, le=100)
    wind_speed: float
    sunrise: str
    sunset: str


class CountryOut(BaseModel):
    name: str
    currency: str | None = None
    capital: str | None = None
    timezones: list[str] = []
    languages: dict[str, str] = {}
    flag_url: str | None = None
    population: int = Field(0, ge=0)
    region: str | None = None


class AdvisoryOut(BaseModel):
    """Public view of a stored advisory."""
    city: str
    weather: WeatherOut
    country: CountryOut
    synced_at: datetime
    created_at: datetime
    advisory: str


class AuditedAdvisoryOut(BaseModel):
    advisory: AdvisoryOut
    audit: AuditType


class DeletedCount(BaseModel):
    country: str
    deleted: int


def to_advisory_out(advisory: TravelAdvisory) -> AdvisoryOut:
    return AdvisoryOut(
        city=advisory.city,
        weather=WeatherOut(**advisory.weather.to_document()),
        country=CountryOut(**advisory.country.to_document()),
        synced_at=advisory.synced_at,
        created_at=advisory.created_at,
        advisory=build_advisory(advisory.weather),
    )


def to_audited_out(result: SyncResult) -> AuditedAdvisoryOut:
    return AuditedAdvisoryOut(
        advisory=to_advisory_out(result.advisory), audit=result.audit,
    )


def envelope(
    data: Any = None,
    *,
    audit: AuditType | None = None,
    message: str | None = None,
) -> dict:
    """SUCCESS response envelope: {status, type?, data?, message?}."""
    body: dict[str, Any] = {"status": ResponseStatus.SUCCESS.value}
    if audit is not None:
        body["type"] = audit.value
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body
