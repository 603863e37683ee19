"""Quota-aware throttling for the sequential sync loop.

The orchestrator checks the REST (``core``) pool every
:data:`REST_CHECK_INTERVAL` repositories and the backfill checks the GraphQL
pool every :data:`GRAPHQL_CHECK_INTERVAL` pages. Both checks read
``GET /rate_limit``; a failed or unreadable read counts as unlimited and
never blocks the run.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from fleetsync.models.github import QuotaReading
from fleetsync.providers.base import RestClient

logger = logging.getLogger(__name__)

REST_CHECK_INTERVAL = 10
"""Check the REST pool before every N-th repository."""
GRAPHQL_CHECK_INTERVAL = 3
"""Check the GraphQL pool before every N-th backfill page."""
INTER_REPO_DELAY = 1.0
INTER_ITEM_DELAY = 0.1

REST_WARNING_THRESHOLD = 100
REST_PAUSE_THRESHOLD = 50
REST_PAUSE_SECONDS = 60.0

GRAPHQL_PAUSE_THRESHOLD = 100
GRAPHQL_PAUSE_SECONDS = 30.0

UNLIMITED = sys.maxsize
"""Returned when no quota reading is available."""

Sleep = Callable[[float], Awaitable[None]]


def _reset_time(reading: QuotaReading) -> str:
    return datetime.fromtimestamp(reading.reset, tz=UTC).isoformat()


class RateLimiter:
    """Reads remaining quota and pauses the run when it runs low.

    Args:
        rest: Client used to read quota; ``None`` disables every check.
        sleep: Awaitable used for every pause and delay.
    """

    def __init__(self, rest: RestClient | None, *, sleep: Sleep = asyncio.sleep) -> None:
        self._rest = rest
        self._sleep = sleep
        self.last_primary: QuotaReading | None = None
        self.last_secondary: QuotaReading | None = None

    async def _read(self) -> tuple[QuotaReading, QuotaReading] | None:
        if self._rest is None:
            return None
        try:
            info = await self._rest.get_rate_limit()
        except Exception as exc:
            logger.debug("Could not fetch rate limit, continuing: %s", str(exc) or type(exc).__name__)
            return None
        return info.core, info.graphql

    async def check_primary(self) -> int:
        """Check the REST pool; pause when critically low. Returns remaining calls."""
        readings = await self._read()
        if readings is None:
            return UNLIMITED

        core = readings[0]
        self.last_primary = core
        reset_time = _reset_time(core)
        logger.debug("REST rate limit: %d remaining (resets at %s)", core.remaining, reset_time)

        if core.remaining < REST_PAUSE_THRESHOLD:
            logger.critical(
                "Rate limit critically low: %d remaining. Pausing for %.0fs...", core.remaining, REST_PAUSE_SECONDS
            )
            await self._sleep(REST_PAUSE_SECONDS)
        elif core.remaining < REST_WARNING_THRESHOLD:
            logger.warning("Rate limit low: %d remaining (resets at %s)", core.remaining, reset_time)

        return core.remaining

    async def check_secondary(self) -> int:
        """Check the GraphQL pool; pause when low. Returns remaining points."""
        readings = await self._read()
        if readings is None:
            return UNLIMITED

        graphql = readings[1]
        self.last_secondary = graphql
        logger.debug("GraphQL rate limit: %d remaining (resets at %s)", graphql.remaining, _reset_time(graphql))

        if graphql.remaining < GRAPHQL_PAUSE_THRESHOLD:
            logger.info(
                "GraphQL rate limit low (%d remaining), pausing for %.0fs...", graphql.remaining, GRAPHQL_PAUSE_SECONDS
            )
            await self._sleep(GRAPHQL_PAUSE_SECONDS)

        return graphql.remaining

    async def delay(self, seconds: float) -> None:
        await self._sleep(seconds)
