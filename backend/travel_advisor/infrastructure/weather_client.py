"""OpenWeatherMap Client — current weather for a city as a WeatherReport.

Invariants:
    - Units are always metric (°C, m/s)
    - A payload missing any consumed field is an UpstreamError, never a partial report
    - sunrise/sunset stay raw epoch seconds here; rendering happens in the pipeline
"""

import logging
from typing import Any

from travel_advisor.core.errors import ErrorContext, UpstreamError
from travel_advisor.core.snapshots import WeatherReport
from travel_advisor.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)

WEATHER_PATH = "/data/2.5/weather"


class OpenWeatherClient:
    """WeatherLookup backed by the OpenWeatherMap current-weather endpoint."""

    def __init__(self, http: ResilientHttpClient, api_key: str):
        self._http = http
        self._api_key = api_key

    async def fetch(self, city: str) -> WeatherReport:
        context = ErrorContext(city=city)
        payload = await self._http.get_json(
            WEATHER_PATH,
            params={"q": city, "APPID": self._api_key, "units": "metric"},
            context=context,
        )
        report = parse_weather(payload, context)
        logger.info(
            f"Weather fetched: {report.temperature}°C, humidity {report.humidity}%",
            extra={"city": city, "country": report.country_code},
        )
        return report


def parse_weather(payload: Any, context: ErrorContext | None = None) -> WeatherReport:
    """Map the OpenWeatherMap JSON body onto a WeatherReport."""
    try:
        main = payload["main"]
        sun = payload["sys"]
        conditions = payload.get("weather") or [{}]
        return WeatherReport(
            description=conditions[0].get("description") or "",
            temperature=float(main["temp"]),
            feels_like=float(main["feels_like"]),
            humidity=int(main["humidity"]),
            wind_speed=float((payload.get("wind") or {}).get("speed", 0.0)),
            sunrise_epoch=int(sun["sunrise"]),
            sunset_epoch=int(sun["sunset"]),
            utc_offset_seconds=int(payload.get("timezone") or 0),
            country_code=sun.get("country") or None,
        )
    except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
        raise UpstreamError(
            f"malformed weather payload ({e.__class__.__name__}: {e})",
            "openweathermap", context=context,
        )
