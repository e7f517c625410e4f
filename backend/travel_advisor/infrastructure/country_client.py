"""REST Countries Client — country facts by ISO alpha code or by full name.

Invariants:
    - Both endpoints answer with an array; the first element is the country
    - An empty array is an UpstreamError (404-equivalent), never None
    - Currency codes keep the upstream's insertion order (first listed = primary)
"""

import logging
from typing import Any
from urllib.parse import quote

from travel_advisor.core.errors import ErrorContext, UpstreamError
from travel_advisor.core.snapshots import CountryReport
from travel_advisor.infrastructure.http_client import ResilientHttpClient

logger = logging.getLogger(__name__)

UPSTREAM = "restcountries"


class RestCountriesClient:
    """CountryLookup backed by the REST Countries v3.1 API."""

    def __init__(self, http: ResilientHttpClient):
        self._http = http

    async def by_code(self, code: str) -> CountryReport:
        context = ErrorContext(country=code)
        payload = await self._http.get_json(
            f"/v3.1/alpha/{quote(code.strip(), safe='')}", context=context,
        )
        return parse_country(payload, context)

    async def by_name(self, name: str) -> CountryReport:
        context = ErrorContext(country=name)
        payload = await self._http.get_json(
            f"/v3.1/name/{quote(name.strip(), safe='')}",
            params={"fullText": "true"},
            context=context,
        )
        report = parse_country(payload, context)
        logger.info(
            f"Country resolved: {report.name} ({report.code}), capitals {list(report.capitals)}",
            extra={"country": report.name},
        )
        return report


def parse_country(payload: Any, context: ErrorContext | None = None) -> CountryReport:
    """Map the first element of a REST Countries array onto a CountryReport."""
    if isinstance(payload, dict):
        # /alpha/{code} answers with a bare object for some codes
        payload = [payload]
    if not payload:
        raise UpstreamError("country not found", UPSTREAM, status_code=404, context=context)
    try:
        item = payload[0]
        return CountryReport(
            name=item["name"]["common"],
            code=item.get("cca2") or None,
            capitals=tuple(item.get("capital") or ()),
            timezones=tuple(item.get("timezones") or ()),
            languages=tuple(sorted((item.get("languages") or {}).items())),
            flag_url=(item.get("flags") or {}).get("png"),
            currencies=tuple((item.get("currencies") or {}).keys()),
            population=int(item.get("population") or 0),
            region=item.get("region"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(
            f"malformed country payload ({e.__class__.__name__}: {e})",
            UPSTREAM, context=context,
        )
