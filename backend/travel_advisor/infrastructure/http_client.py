"""Resilient HTTP Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max_retries retries with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - Non-JSON bodies are failures, not retries
    - All failures mapped to UpstreamError (core/errors.py) tagged with the upstream name

Design Decisions:
    - One wrapper per upstream: base URL, name and retry budget travel together
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
    - transport injectable: tests drive the wrapper with httpx.MockTransport
"""

import asyncio
import logging
import random
import time
from typing import Any

import httpx

from travel_advisor.core.errors import ErrorContext, UpstreamError

logger = logging.getLogger(__name__)

_RATE_LIMITED = 429


class ResilientHttpClient:
    """JSON GET client for one upstream with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        name: str,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        base_delay_ms: int = 250,
        max_delay_ms: int = 5_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> Any:
        """GET *path* and decode JSON, retrying transient failures."""
        for attempt in range(self.max_retries + 1):
            started = time.monotonic()
            try:
                response = await self.client.get(path, params=params)
            except httpx.TransportError as e:  # connect/read errors and timeouts
                await self._handle_transient_error(e, attempt, context)
                continue
            except httpx.HTTPError as e:  # undecodable body, redirect loops
                logger.warning(
                    f"{self.name} request {path} failed: {e.__class__.__name__}",
                    extra={"upstream": self.name, "attempt": attempt + 1},
                )
                raise UpstreamError(
                    f"request failed ({e.__class__.__name__}: {e})",
                    self.name, context=context,
                ) from e

            duration_ms = int((time.monotonic() - started) * 1000)
            if response.status_code == _RATE_LIMITED:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code >= 500:
                await self._handle_transient_error(
                    httpx.HTTPStatusError(
                        f"server error {response.status_code}",
                        request=response.request, response=response,
                    ),
                    attempt, context, status_code=response.status_code,
                )
                continue
            if response.status_code >= 400:
                logger.warning(
                    f"{self.name} rejected request {path}",
                    extra={
                        "upstream": self.name,
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )
                raise UpstreamError(
                    f"request rejected with status {response.status_code}",
                    self.name,
                    status_code=response.status_code,
                    context=context,
                )

            self._log_success(path, response, attempt, duration_ms)
            try:
                return response.json()
            except ValueError:
                raise UpstreamError(
                    "invalid JSON response", self.name,
                    status_code=response.status_code, context=context,
                )

        # Unreachable: the last attempt either returns or raises in a handler
        raise UpstreamError("retries exhausted", self.name, context=context)

    async def aclose(self) -> None:
        await self.client.aclose()

    def _log_success(
        self, path: str, response: httpx.Response, attempt: int, duration_ms: int,
    ) -> None:
        logger.info(
            f"{self.name} call succeeded: {path}",
            extra={
                "upstream": self.name,
                "status_code": response.status_code,
                "attempt": attempt + 1,
                "duration_ms": duration_ms,
            },
        )

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise UpstreamError(
                "rate limit exceeded after retries",
                self.name,
                status_code=_RATE_LIMITED,
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"{self.name} rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
            extra={"upstream": self.name, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self,
        e: Exception,
        attempt: int,
        context: ErrorContext | None,
        status_code: int | None = None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise UpstreamError(
                f"transient failure after {self.max_retries} retries: {e}",
                self.name,
                status_code=status_code,
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"{self.name} transient error, retry after {delay}ms: {e}",
            extra={"upstream": self.name, "attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header in seconds (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.strip().isdigit():
            return int(val) * 1000
        return None
