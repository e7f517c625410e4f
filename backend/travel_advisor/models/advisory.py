"""Advisory ORM — one row per normalized city key, snapshots stored as JSON documents.

Invariants:
    - city_key is the primary key (normalized, lower-cased city name)
    - weather/country hold AdvisorySnapshot/CountrySnapshot documents as-is
    - created_at is indexed (listing by creation order)

Design Decisions:
    - JSON columns over normalized tables: the entity is always read and replaced whole
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from travel_advisor.core.snapshots import (
    AdvisorySnapshot, CountrySnapshot, TravelAdvisory,
)
from travel_advisor.db.base import Base


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AdvisoryRecord(Base):
    """Persisted TravelAdvisory."""
    __tablename__ = "advisories"

    city_key: Mapped[str] = mapped_column(String(100), primary_key=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    weather: Mapped[dict] = mapped_column(JSON, nullable=False)
    country: Mapped[dict] = mapped_column(JSON, nullable=False)
    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )

    @classmethod
    def from_domain(cls, advisory: TravelAdvisory) -> "AdvisoryRecord":
        record = cls(city_key=advisory.key, created_at=advisory.created_at)
        record.apply(advisory)
        return record

    def apply(self, advisory: TravelAdvisory) -> None:
        """Overwrite every synced field; created_at is left to the caller."""
        self.city = advisory.city
        self.weather = advisory.weather.to_document()
        self.country = advisory.country.to_document()
        self.synced_at = advisory.synced_at

    def to_domain(self) -> TravelAdvisory:
        return TravelAdvisory(
            key=self.city_key,
            city=self.city,
            weather=AdvisorySnapshot.from_document(self.weather),
            country=CountrySnapshot.from_document(self.country),
            synced_at=_as_utc(self.synced_at),
            created_at=_as_utc(self.created_at),
        )
