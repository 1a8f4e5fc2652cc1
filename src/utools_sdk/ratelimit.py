"""Token-bucket rate limiter shared by every in-flight request of a client."""

from __future__ import annotations

import asyncio
import time
from typing import Callable


class AsyncRateLimiter:
    """Admits at most ``rate`` acquisitions per second, with bursts of ``burst``.

    Safe for concurrent use by many tasks on one event loop. A task cancelled
    while waiting leaves the bucket untouched.
    """

    def __init__(self, rate: float, burst: int = 1, *, clock: Callable[[], float] = time.monotonic) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self._rate = float(rate)
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self._burst), self._tokens + elapsed * self._rate)
        self._updated = now

    async def wait(self) -> None:
        while True:
            async with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                delay = (1.0 - self._tokens) / self._rate
            await asyncio.sleep(delay)


__all__ = ["AsyncRateLimiter"]
