"""Sync Pipeline — fetch, merge and persist the advisory for exactly one city.

Invariants:
    - Weather is fetched before country: the country lookup needs the code weather reports
    - synced_at == created_at == now on the assembled record; the store keeps an
      existing created_at unless configured for the legacy reset
    - sync_city_with_audit() checks existence strictly BEFORE the write
    - try_sync() never raises AdvisorError; anything else is a bug and propagates

Design Decisions:
    - Clock injected: tests pin synced_at/created_at without patching datetime
    - Missing country code or out-of-range sunrise/sunset epochs from weather are
      UpstreamErrors (no usable report → no record)
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from travel_advisor.core.domain_types import AuditType
from travel_advisor.core.errors import AdvisorError, ErrorContext, UpstreamError
from travel_advisor.core.normalize_city import require_city_key
from travel_advisor.core.repository_protocols import (
    AdvisoryStore, CountryLookup, WeatherLookup,
)
from travel_advisor.core.snapshots import (
    AdvisorySnapshot, CountrySnapshot, TravelAdvisory, WeatherReport,
)
from travel_advisor.core.sync_outcome import SyncFailure, SyncOutcome, SyncResult
from travel_advisor.core.time_format import to_clock_time

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_advisory_snapshot(report: WeatherReport) -> AdvisorySnapshot:
    """Render sunrise/sunset as local wall-clock strings for the city."""
    return AdvisorySnapshot(
        description=report.description,
        temperature=report.temperature,
        feels_like=report.feels_like,
        humidity=report.humidity,
        wind_speed=report.wind_speed,
        sunrise=to_clock_time(report.sunrise_epoch, report.utc_offset_seconds),
        sunset=to_clock_time(report.sunset_epoch, report.utc_offset_seconds),
    )


class SyncPipeline:
    """Syncs one city end-to-end against the weather and country upstreams."""

    def __init__(
        self,
        store: AdvisoryStore,
        weather: WeatherLookup,
        countries: CountryLookup,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.weather = weather
        self.countries = countries
        self.clock = clock

    async def sync_city(self, display_name: str) -> TravelAdvisory:
        """Fetch and persist one city. Raises CityValidationError/UpstreamError/StoreError."""
        key = require_city_key(display_name)
        city = display_name.strip()

        report = await self.weather.fetch(city)
        if not report.country_code:
            raise UpstreamError(
                "weather response carried no country code",
                "openweathermap", context=ErrorContext(city=city),
            )
        country = await self.countries.by_code(report.country_code)
        try:
            weather = to_advisory_snapshot(report)
        except (OverflowError, OSError, ValueError) as e:
            raise UpstreamError(
                f"weather response carried unusable sunrise/sunset: {e}",
                "openweathermap", context=ErrorContext(city=city),
            ) from e

        now = self.clock()
        advisory = TravelAdvisory(
            key=key,
            city=city,
            weather=weather,
            country=CountrySnapshot.from_report(country),
            synced_at=now,
            created_at=now,
        )
        return await self.store.save(advisory)

    async def sync_city_with_audit(self, display_name: str) -> SyncResult:
        key = require_city_key(display_name)
        existed = await self.store.exists_by_id(key)
        saved = await self.sync_city(display_name)
        audit = AuditType.from_existence(existed)
        logger.info(
            f"Synced {saved.city}: {audit.value}",
            extra={"city": key, "country": saved.country.name, "audit": audit.value},
        )
        return SyncResult(saved, audit)

    async def try_sync(self, display_name: str) -> SyncOutcome:
        """Like sync_city_with_audit, but expected failures come back as SyncFailure."""
        try:
            return await self.sync_city_with_audit(display_name)
        except AdvisorError as e:
            logger.warning(
                f"Sync failed for {display_name}: {e.message}",
                extra={"city": display_name, "error_code": e.code},
            )
            return SyncFailure(display_name, e)
