"""Shared cache for FPL bootstrap-static data.

Every summary request needs the bootstrap-static payload (player directory,
teams, gameweek pointers). It is ~1.8MB and changes rarely, so one parsed copy
is kept per process:

1. Prevents multiple concurrent requests parsing the same response
2. Reduces FPL API calls (data rarely changes during a gameweek)
3. Handles concurrent requests without thundering herd via asyncio.Lock

The cache is owned by the application (constructed in create_app and injected
into FplApiClient) rather than living at module level.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

BOOTSTRAP_CACHE_TTL = 300  # 5 minutes
BOOTSTRAP_CACHE_SIZE = 1  # Only cache one version (current)

_CACHE_KEY = "bootstrap"


class BootstrapCache:
    """Single-entry TTL cache for bootstrap-static with thundering herd protection."""

    def __init__(
        self,
        ttl: int = BOOTSTRAP_CACHE_TTL,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._cache: TTLCache[str, dict[str, Any]] = TTLCache(
            maxsize=BOOTSTRAP_CACHE_SIZE,
            ttl=ttl,
            timer=timer,
        )
        self._lock = asyncio.Lock()
        self._last_fetch_time: float = 0.0

    async def get(
        self,
        fetcher: Callable[[], Awaitable[dict[str, Any]]],
    ) -> dict[str, Any]:
        """Get bootstrap data from cache or fetch if expired/missing.

        Args:
            fetcher: Zero-argument coroutine function returning the parsed
                     bootstrap-static payload.

        Returns:
            Bootstrap-static data dict with elements, events, teams arrays

        Raises:
            FplApiError: If fetch fails
        """
        # Fast path: TTLCache.get() returns None for expired items and the
        # event loop is single-threaded, so no lock is needed here
        cached = self._cache.get(_CACHE_KEY)
        if cached is not None:
            logger.debug("Bootstrap cache hit")
            return cached

        async with self._lock:
            # Another request may have populated the cache while we waited
            cached = self._cache.get(_CACHE_KEY)
            if cached is not None:
                logger.debug("Bootstrap cache hit (after lock)")
                return cached

            logger.info("Fetching bootstrap-static from FPL API (cache miss)")
            start = time.monotonic()

            try:
                data = await fetcher()
            except Exception as e:
                logger.error(
                    f"Failed to fetch bootstrap-static: {type(e).__name__}: {e}. "
                    "Request will fail, next request will retry."
                )
                raise

            elapsed = time.monotonic() - start
            self._last_fetch_time = time.time()

            if not data.get("elements"):
                logger.error(
                    "Bootstrap response missing 'elements' key. "
                    f"Response keys: {list(data.keys())}. "
                    "API may be under maintenance or rate-limiting."
                )
                return data  # Return but don't cache invalid response

            self._cache[_CACHE_KEY] = data
            logger.info(
                f"Cached bootstrap-static: {len(data.get('elements', []))} players, "
                f"fetched in {elapsed:.2f}s"
            )
            return data

        for event in cached.get("events", []):
            if event.get("is_current"):
                event_id = event.get("id")
                if event_id is not None:
                    return event_id
                logger.warning(f"Event marked is_current but has no id: {event}")

        # Cache exists but no current gameweek - normal during off-season
        return None

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics for monitoring."""
        return {
            "cached": _CACHE_KEY in self._cache,
            "last_fetch": self._last_fetch_time,
            "ttl_seconds": self.ttl,
        }
