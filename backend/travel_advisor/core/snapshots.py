"""Advisory Snapshots — immutable value objects for weather, country and the persisted advisory.

Invariants:
    - All dataclasses are frozen: a snapshot never changes after it is built
    - humidity is a percentage (0–100); population is non-negative
    - sunrise/sunset on AdvisorySnapshot are already rendered "hh:mm AM/PM" strings
    - TravelAdvisory.key is a normalized CityKey; TravelAdvisory.city keeps the display name

Design Decisions:
    - WeatherReport/CountryReport are the minimal parsed upstream payloads;
      AdvisorySnapshot/CountrySnapshot are what gets stored. The pipeline maps one onto the other.
    - to_document()/from_document() give the store a plain-JSON shape for its JSON columns
"""

from dataclasses import dataclass, replace
from datetime import datetime


# ─── Upstream payloads ───────────────────────────────────────────

@dataclass(frozen=True)
class WeatherReport:
    """Fields consumed from the current-weather lookup."""
    description: str
    temperature: float
    feels_like: float
    humidity: int
    wind_speed: float
    sunrise_epoch: int
    sunset_epoch: int
    utc_offset_seconds: int
    country_code: str | None


@dataclass(frozen=True)
class CountryReport:
    """Fields consumed from the country lookup (by code or by name)."""
    name: str
    code: str | None = None
    capitals: tuple[str, ...] = ()
    timezones: tuple[str, ...] = ()
    languages: tuple[tuple[str, str], ...] = ()
    flag_url: str | None = None
    currencies: tuple[str, ...] = ()
    population: int = 0
    region: str | None = None


# ─── Stored snapshots ────────────────────────────────────────────

@dataclass(frozen=True)
class AdvisorySnapshot:
    """Point-in-time weather facts for one city."""
    description: str
    temperature: float
    feels_like: float
    humidity: int
    wind_speed: float
    sunrise: str
    sunset: str

    def to_document(self) -> dict:
        return {
            "description": self.description,
            "temperature": self.temperature,
            "feels_like": self.feels_like,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "sunrise": self.sunrise,
            "sunset": self.sunset,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "AdvisorySnapshot":
        return cls(
            description=doc.get("description") or "",
            temperature=float(doc["temperature"]),
            feels_like=float(doc["feels_like"]),
            humidity=int(doc["humidity"]),
            wind_speed=float(doc["wind_speed"]),
            sunrise=doc.get("sunrise") or "",
            sunset=doc.get("sunset") or "",
        )


@dataclass(frozen=True)
class CountrySnapshot:
    """Point-in-time country facts for the country a city belongs to."""
    name: str
    currency: str | None
    capital: str | None
    timezones: frozenset[str]
    languages: tuple[tuple[str, str], ...]
    flag_url: str | None
    population: int
    region: str | None

    def to_document(self) -> dict:
        return {
            "name": self.name,
            "currency": self.currency,
            "capital": self.capital,
            "timezones": sorted(self.timezones),
            "languages": dict(self.languages),
            "flag_url": self.flag_url,
            "population": self.population,
            "region": self.region,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "CountrySnapshot":
        return cls(
            name=doc["name"],
            currency=doc.get("currency"),
            capital=doc.get("capital"),
            timezones=frozenset(doc.get("timezones") or ()),
            languages=tuple(sorted((doc.get("languages") or {}).items())),
            flag_url=doc.get("flag_url"),
            population=int(doc.get("population") or 0),
            region=doc.get("region"),
        )

    @classmethod
    def from_report(cls, report: CountryReport) -> "CountrySnapshot":
        """First listed currency and capital win; missing lists become None."""
        return cls(
            name=report.name,
            currency=report.currencies[0] if report.currencies else None,
            capital=report.capitals[0] if report.capitals else None,
            timezones=frozenset(report.timezones),
            languages=report.languages,
            flag_url=report.flag_url,
            population=max(0, report.population),
            region=report.region,
        )


@dataclass(frozen=True)
class TravelAdvisory:
    """The persisted entity: one advisory per normalized city key."""
    key: str
    city: str
    weather: AdvisorySnapshot
    country: CountrySnapshot
    synced_at: datetime
    created_at: datetime

    def with_created_at(self, created_at: datetime) -> "TravelAdvisory":
        return replace(self, created_at=created_at)
