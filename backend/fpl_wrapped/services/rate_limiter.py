"""Fixed-window rate limiter for inbound requests, keyed by client.

Each client gets a window that opens on its first request and expires after
`window` seconds. Windows live in a TTLCache so idle clients are evicted
without a cleanup task.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW = 60  # seconds
RATE_LIMIT_MAX_REQUESTS = 30
MAX_TRACKED_CLIENTS = 10_000


@dataclass(slots=True)
class _Window:
    started: float
    count: int = 0


class RateLimiter:
    """Allows at most max_requests per client per window."""

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window: int = RATE_LIMIT_WINDOW,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window = window
        self._timer = timer
        # The window object is mutated in place; re-assigning it would reset its TTL
        self._windows: TTLCache[str, _Window] = TTLCache(
            maxsize=MAX_TRACKED_CLIENTS, ttl=window, timer=timer
        )
        self._rejected = 0

    def is_allowed(self, key: str) -> bool:
        """Count a request for key and report whether it is within the limit."""
        window = self._windows.get(key)
        if window is None:
            window = _Window(started=self._timer())
            self._windows[key] = window

        if window.count >= self.max_requests:
            self._rejected += 1
            logger.warning(f"Rate limit exceeded for {key}")
            return False

        window.count += 1
        return True

    def retry_after(self, key: str) -> int:
        """Seconds until key's current window resets (0 when not limited)."""
        window = self._windows.get(key)
        if window is None:
            return 0
        remaining = self.window - (self._timer() - window.started)
        return max(1, math.ceil(remaining))

    def clear(self) -> None:
        self._windows.clear()
        self._rejected = 0

    def stats(self) -> dict[str, Any]:
        self._windows.expire()
        return {
            "tracked_clients": len(self._windows),
            "rejected": self._rejected,
            "max_requests": self.max_requests,
            "window_seconds": self.window,
        }
