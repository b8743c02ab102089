"""Tests for the per-sender sliding window limiter."""

from __future__ import annotations

import asyncio

import pytest

from helpers import FakeClock
from shopbot.services.exceptions import RateLimitExceeded
from shopbot.services.rate_limit import SlidingWindowRateLimiter


@pytest.mark.asyncio
async def test_thirty_first_event_in_window_is_rejected():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(30, 60, clock=clock)

    for _ in range(30):
        await limiter.hit("42")
        clock.advance(1)

    with pytest.raises(RateLimitExceeded):
        await limiter.hit("42")
    assert limiter.snapshot("42").count == 31


@pytest.mark.asyncio
async def test_window_restarts_after_interval():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(2, 60, clock=clock)

    await limiter.hit("42")
    await limiter.hit("42")
    assert await limiter.allow("42") is False

    clock.advance(60.5)
    state = await limiter.hit("42")

    assert state.count == 1
    assert state.window_start == clock.now


@pytest.mark.asyncio
async def test_window_boundary_is_inclusive():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(1, 60, clock=clock)

    await limiter.hit("42")
    clock.advance(60)

    assert await limiter.allow("42") is False


@pytest.mark.asyncio
async def test_senders_are_counted_separately():
    limiter = SlidingWindowRateLimiter(1, 60, clock=FakeClock())

    assert await limiter.allow("a") is True
    assert await limiter.allow("b") is True
    assert await limiter.allow("a") is False


@pytest.mark.asyncio
async def test_concurrent_hits_never_exceed_cap():
    limiter = SlidingWindowRateLimiter(10, 60, clock=FakeClock())

    results = await asyncio.gather(*(limiter.allow("42") for _ in range(25)))

    assert results.count(True) == 10
    assert limiter.snapshot("42").count == 25


@pytest.mark.asyncio
async def test_reset_and_prune():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(5, 60, clock=clock)
    await limiter.hit("old")
    clock.advance(61)
    await limiter.hit("fresh")

    assert limiter.prune() == 1
    assert limiter.snapshot("old") is None
    assert limiter.snapshot("fresh").count == 1

    limiter.reset("fresh")
    assert limiter.snapshot("fresh") is None

    await limiter.hit("x")
    limiter.reset()
    assert limiter.snapshot("x") is None


@pytest.mark.asyncio
async def test_maybe_prune_runs_at_most_once_per_window():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(5, 60, clock=clock)
    await limiter.hit("idle")
    clock.advance(61)

    assert limiter.maybe_prune() == 1
    await limiter.hit("idle")
    clock.advance(61)
    assert limiter.maybe_prune() == 1
    await limiter.hit("idle")
    clock.advance(30)
    assert limiter.maybe_prune() == 0
    assert limiter.snapshot("idle").count == 1
