"""Upstream Clients — process-wide weather, country and city-discovery clients.

Invariants:
    - One ResilientHttpClient per upstream, shared by every request and scheduler run
    - close_upstream() closes every underlying httpx client exactly once

Design Decisions:
    - Singleton initialized on startup, same lifecycle as db_manager (FastAPI lifespan)
"""

import logging
from dataclasses import dataclass

from travel_advisor.config import Settings
from travel_advisor.infrastructure.city_client import GeoNamesCityClient
from travel_advisor.infrastructure.country_client import RestCountriesClient
from travel_advisor.infrastructure.http_client import ResilientHttpClient
from travel_advisor.infrastructure.weather_client import OpenWeatherClient

logger = logging.getLogger(__name__)


@dataclass
class UpstreamClients:
    weather: OpenWeatherClient
    countries: RestCountriesClient
    cities: GeoNamesCityClient
    http_clients: tuple[ResilientHttpClient, ...]

    async def aclose(self) -> None:
        for http in self.http_clients:
            await http.aclose()


def build_upstream(settings: Settings) -> UpstreamClients:
    def http(name: str, base_url: str) -> ResilientHttpClient:
        return ResilientHttpClient(
            name,
            base_url,
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
            base_delay_ms=settings.http_base_delay_ms,
            max_delay_ms=settings.http_max_delay_ms,
        )

    weather_http = http("openweathermap", settings.weather_base_url)
    country_http = http("restcountries", settings.country_base_url)
    cities_http = http("geonames", settings.cities_base_url)
    return UpstreamClients(
        weather=OpenWeatherClient(weather_http, settings.weather_api_key),
        countries=RestCountriesClient(country_http),
        cities=GeoNamesCityClient(cities_http, settings.cities_username),
        http_clients=(weather_http, country_http, cities_http),
    )


# Singleton (initialized on startup)
upstream: UpstreamClients | None = None


def init_upstream(settings: Settings) -> UpstreamClients:
    global upstream
    upstream = build_upstream(settings)
    if not upstream.cities.is_configured:
        logger.warning("cities_username not set, country refresh will use capitals only")
    return upstream


async def close_upstream() -> None:
    global upstream
    if upstream:
        await upstream.aclose()
        upstream = None


def get_upstream() -> UpstreamClients:
    """FastAPI dependency for the shared upstream clients."""
    if not upstream:
        raise RuntimeError("Upstream clients not initialized")
    return upstream
