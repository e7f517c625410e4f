"""GeoNames City Discovery — most populous populated places of a country.

Invariants:
    - top_cities NEVER raises: unconfigured username, upstream errors and malformed
      bodies all degrade to an empty list (logged at WARNING)
    - Returned names are non-blank and ordered by population, as GeoNames ranks them
    - GeoNames reports application errors with HTTP 200 and a "status" object; treated as failure
"""

import logging

from travel_advisor.core.errors import AdvisorError, ErrorContext
from travel_advisor.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)

SEARCH_PATH = "/searchJSON"


class GeoNamesCityClient:
    """CityDiscovery backed by the GeoNames search API."""

    def __init__(self, http: ResilientHttpClient, username: str):
        self._http = http
        self._username = username

    @property
    def is_configured(self) -> bool:
        return bool(self._username and self._username.strip())

    async def top_cities(self, country_code: str, limit: int) -> list[str]:
        if not self.is_configured:
            logger.warning("GeoNames username missing, returning empty city list")
            return []
        try:
            payload = await self._http.get_json(
                SEARCH_PATH,
                params={
                    "country": country_code,
                    "featureClass": "P",
                    "orderby": "population",
                    "maxRows": limit,
                    "username": self._username,
                },
                context=ErrorContext(country=country_code),
            )
        except AdvisorError as e:
            logger.warning(
                f"GeoNames call failed for {country_code}: {e.message}",
                extra={"country": country_code, "error_code": e.code},
            )
            return []

        names = extract_city_names(payload)
        logger.info(
            f"GeoNames returned {len(names)} cities for {country_code}",
            extra={"country": country_code, "count": len(names)},
        )
        return names[:limit]


def extract_city_names(payload: object) -> list[str]:
    if not isinstance(payload, dict):
        return []
    if "status" in payload:
        logger.warning(f"GeoNames error status: {payload['status']}")
        return []
    names = []
    for entry in payload.get("geonames") or []:
        name = entry.get("name") if isinstance(entry, dict) else None
        if isinstance(name, str) and name.strip():
            names.append(name)
    return names
