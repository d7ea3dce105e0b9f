"""In-process cache for built season summaries.

Owned by the application (constructed in create_app) and injected into the
wrapped service. Entries carry their own TTL so callers can cache different
results for different durations.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import TLRUCache

logger = logging.getLogger(__name__)

SUMMARY_CACHE_TTL = 300  # 5 minutes
SUMMARY_CACHE_SIZE = 1000


@dataclass(frozen=True, slots=True)
class _Entry:
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class SummaryCache:
    """Bounded key/value cache with per-entry expiry."""

    def __init__(
        self,
        maxsize: int = SUMMARY_CACHE_SIZE,
        default_ttl: float = SUMMARY_CACHE_TTL,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Cached value, or None when missing or expired."""
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None
        self._hits += 1
        logger.debug(f"Summary cache hit: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        self._cache[key] = _Entry(value=value, ttl=self.default_ttl if ttl is None else ttl)

    def clear(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics for monitoring."""
        return {
            "size": len(self),
            "max_size": self._cache.maxsize,
            "hits": self._hits,
            "misses": self._misses,
            "ttl_seconds": self.default_ttl,
        }
