"""
Topapi Backend: Fixed Window Rate Limiter
===========================================

What:  Per-client request counter with a fixed window (default 100 / 15 min).
Why:   Advisory backpressure against a single abusive address.
How:   Each key maps to (window_start, count). A hit either starts a new
       window, or increments the count and compares it to the limit.
       Check and increment happen with no await in between, so a single
       event loop never interleaves two hits on the same key.

Algorithm: Fixed Window Counter
    1. If the key has no window, or its window expired, start one at `now`
    2. Increment the count
    3. Allowed iff count <= limit
    Reset time is window_start + window.

Production Upgrade Path:
    State is per process. Multiple workers each enforce their own budget;
    a shared store (Redis INCR + EXPIRE) would be needed to enforce a
    global one.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the window resets


class FixedWindowRateLimiter:
    """
    Args:
        limit:            Requests allowed per window
        window:           Window length in seconds
        clock:            Monotonic time source (injectable for tests)
        cleanup_interval: Prune expired windows every N hits
    """

    def __init__(
        self,
        limit: int = 100,
        window: int = 900,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: int = 1000,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._hits = 0

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for `key` and decide whether it may proceed."""
        now = self._clock()
        start, count = self._windows.get(key, (now, 0))
        if now - start >= self.window:
            start, count = now, 0
        count += 1
        self._windows[key] = (start, count)

        self._hits += 1
        if self._hits % self._cleanup_interval == 0:
            self._prune(now)

        reset_after = max(1, math.ceil(start + self.window - now))
        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_after=reset_after,
        )

    def reset(self) -> None:
        self._windows.clear()
        self._hits = 0

    def _prune(self, now: float) -> None:
        """Drop windows that have expired so idle addresses don't accumulate."""
        expired = [key for key, (start, _) in self._windows.items() if now - start >= self.window]
        for key in expired:
            del self._windows[key]
        if expired:
            logger.debug("Pruned %d expired rate-limit windows", len(expired))

    def __len__(self) -> int:
        return len(self._windows)
