"""Retry loop shared by typed, untyped and raw requests."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from .errors import is_retryable
from .observability import ClientObserver
from .ratelimit import AsyncRateLimiter

T = TypeVar("T")

DEFAULT_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_BACKOFF_SECONDS = 30.0


def backoff_delay(
    attempt: int,
    base: float = DEFAULT_BACKOFF_SECONDS,
    cap: float = DEFAULT_MAX_BACKOFF_SECONDS,
) -> float:
    """Delay before retry ``attempt`` (1-based): ``min(base * 2**(attempt-1), cap)``."""
    if attempt < 1:
        return 0.0
    return min(base * (2 ** (attempt - 1)), cap)


class RetryDriver:
    def __init__(
        self,
        limiter: AsyncRateLimiter,
        observer: ClientObserver,
        *,
        max_retries: int,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS,
    ) -> None:
        self._limiter = limiter
        self._observer = observer
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds

    async def run(self, operation: Callable[[], Awaitable[T]], *, method: str, path: str) -> T:
        """Run ``operation`` until it succeeds, fails permanently or retries run out.

        Attempts are strictly sequential and each one waits on the rate
        limiter first. Cancellation of the calling task aborts the backoff
        sleep or the limiter wait immediately.
        """
        attempt = 0
        while True:
            await self._limiter.wait()
            try:
                return await operation()
            except Exception as exc:
                if not is_retryable(exc) or attempt >= self.max_retries:
                    raise
                attempt += 1
                delay = backoff_delay(attempt, self.backoff_seconds, self.max_backoff_seconds)
                self._observer.retry_scheduled(method, path, attempt, self.max_retries, delay, exc)
            await asyncio.sleep(delay)


__all__ = ["RetryDriver", "backoff_delay"]
