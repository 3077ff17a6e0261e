"""Call-rate limiting for batch rescoring, which hits a rate-limited LLM."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Minimum-interval limiter: at most `calls_per_minute` acquisitions per minute."""

    def __init__(
        self,
        calls_per_minute: Optional[float],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._interval = 60.0 / float(calls_per_minute) if calls_per_minute else 0.0
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._next_available = 0.0

    @property
    def interval(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        if self._interval <= 0:
            return
        async with self._lock:
            now = self._clock()
            if now < self._next_available:
                await self._sleep(self._next_available - now)
                now = self._clock()
            self._next_available = now + self._interval
