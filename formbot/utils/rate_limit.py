"""Interval rate limiter for pacing calls to external services.

A token bucket with capacity 1: one token is available immediately and a
new token becomes available ``interval_seconds`` after the previous one was
taken. With a single caller this inserts a fixed delay between documents.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalRateLimiter:
    """Token bucket of size 1, refilled every ``interval_seconds``.

    Safe to share between coroutines; waiters are served one at a time.
    """

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0 (got: {interval_seconds})")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_acquired: Optional[float] = None

    def seconds_until_available(self) -> float:
        """How long the next ``acquire`` would have to wait right now."""
        if self._last_acquired is None:
            return 0.0
        elapsed = self._clock() - self._last_acquired
        return max(self.interval_seconds - elapsed, 0.0)

    async def acquire(self) -> float:
        """Wait for the token and take it.

        Returns:
            Seconds spent waiting (0.0 for the first call).
        """
        async with self._lock:
            wait_time = self.seconds_until_available()
            if wait_time > 0:
                logger.debug("Rate limiter waiting %.2fs", wait_time)
                await asyncio.sleep(wait_time)
            self._last_acquired = self._clock()
            return wait_time

    def reset(self) -> None:
        """Make the token available immediately."""
        self._last_acquired = None
