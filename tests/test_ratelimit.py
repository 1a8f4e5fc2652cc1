from __future__ import annotations

import asyncio
import time

import pytest

from utools_sdk.ratelimit import AsyncRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_first_token_is_immediate_then_bucket_is_empty() -> None:
    clock = FakeClock()
    limiter = AsyncRateLimiter(2.0, clock=clock)

    await asyncio.wait_for(limiter.wait(), timeout=0.1)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(limiter.wait(), timeout=0.05)

    clock.now += 0.5
    await asyncio.wait_for(limiter.wait(), timeout=0.1)


@pytest.mark.asyncio
async def test_refill_never_exceeds_burst() -> None:
    clock = FakeClock()
    limiter = AsyncRateLimiter(10.0, burst=1, clock=clock)
    await limiter.wait()

    clock.now += 100.0
    await asyncio.wait_for(limiter.wait(), timeout=0.1)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(limiter.wait(), timeout=0.05)


@pytest.mark.asyncio
async def test_concurrent_waiters_are_spaced_by_rate() -> None:
    limiter = AsyncRateLimiter(20.0)
    admitted: list[float] = []

    async def worker() -> None:
        await limiter.wait()
        admitted.append(time.monotonic())

    started = time.monotonic()
    await asyncio.gather(*(worker() for _ in range(5)))

    # one immediate token plus four refills at 20/s
    assert admitted[-1] - started >= 0.19
    assert len(admitted) == 5


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_consume_a_token() -> None:
    clock = FakeClock()
    limiter = AsyncRateLimiter(1.0, clock=clock)
    await limiter.wait()

    waiter = asyncio.create_task(limiter.wait())
    await asyncio.sleep(0.01)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    clock.now += 1.0
    await asyncio.wait_for(limiter.wait(), timeout=0.1)


def test_rejects_invalid_rate() -> None:
    with pytest.raises(ValueError):
        AsyncRateLimiter(0)
    with pytest.raises(ValueError):
        AsyncRateLimiter(1.0, burst=0)
