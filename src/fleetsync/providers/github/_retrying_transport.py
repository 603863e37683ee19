"""httpx async transport wrapper with retry and backoff for GitHub."""

from __future__ import annotations

import asyncio
import logging
import random
import time

import httpx

logger = logging.getLogger(__name__)

# Status codes considered transient and eligible for automatic retry.
_RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})

# Longest single wait honoured from a Retry-After / reset header.
_MAX_HEADER_WAIT = 60.0


class RetryingTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx async transport with automatic retry on transient failures.

    Retries, up to *max_retries* times:

    - transport-level errors (connection reset, timeout, ...)
    - HTTP 429 and 502 / 503 / 504
    - HTTP 403 responses that are GitHub secondary rate limits, i.e. that
      carry ``Retry-After`` or report ``x-ratelimit-remaining: 0``

    Waits honour ``Retry-After`` (or ``x-ratelimit-reset``) when present and
    otherwise use exponential backoff with jitter. The run is sequential, so
    a wait here simply delays the one in-flight request.
    """

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 3,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._max_retries = max_retries

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        for attempt in range(self._max_retries + 1):
            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError:
                if attempt >= self._max_retries:
                    raise
                await self._sleep_backoff(attempt)
                continue

            if attempt >= self._max_retries or not self._is_retryable(response):
                return response

            await response.aread()
            header_wait = self._header_wait(response)
            if header_wait > 0:
                logger.warning(
                    "GitHub asked us to wait %.0fs (HTTP %d) before retrying %s",
                    header_wait,
                    response.status_code,
                    request.url.path,
                )
                await asyncio.sleep(header_wait)
            else:
                await self._sleep_backoff(attempt)

        raise httpx.TransportError("Request failed after retries")  # pragma: no cover

    async def aclose(self) -> None:
        await self._transport.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_retryable(response: httpx.Response) -> bool:
        if response.status_code in _RETRYABLE_STATUS_CODES:
            return True
        if response.status_code == 403:
            return "Retry-After" in response.headers or response.headers.get("x-ratelimit-remaining") == "0"
        return False

    @staticmethod
    def _header_wait(response: httpx.Response) -> float:
        raw = response.headers.get("Retry-After")
        if raw is not None:
            try:
                return min(_MAX_HEADER_WAIT, max(0.0, float(raw)))
            except ValueError:
                return 0.0
        reset = response.headers.get("x-ratelimit-reset")
        if reset is not None and response.headers.get("x-ratelimit-remaining") == "0":
            try:
                return min(_MAX_HEADER_WAIT, max(0.0, float(reset) - time.time()))
            except ValueError:
                return 0.0
        return 0.0

    @staticmethod
    async def _sleep_backoff(attempt: int) -> None:
        seconds = min(4.0, float(2**attempt)) + random.uniform(0.0, 0.25)
        logger.warning("Retrying GitHub request (attempt %d)", attempt + 1)
        await asyncio.sleep(seconds)
