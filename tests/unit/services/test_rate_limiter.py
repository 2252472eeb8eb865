"""
Unit tests for the rate limiter backends
"""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.adapter.services.rate_limiter import InMemoryRateLimiter, RedisRateLimiter

NOW = datetime(2025, 3, 10, 12, 0, 0)


@pytest.mark.asyncio
async def test_in_memory_denies_request_over_limit():
    limiter = InMemoryRateLimiter()

    decisions = [
        await limiter.check_and_consume("otp_send:1.2.3.4", 5, 60, NOW + timedelta(seconds=i))
        for i in range(6)
    ]

    assert [d.allowed for d in decisions] == [True] * 5 + [False]
    assert decisions[0].remaining == 4
    assert decisions[4].remaining == 0
    assert decisions[5].reset_at == NOW + timedelta(seconds=60)


@pytest.mark.asyncio
async def test_in_memory_window_resets():
    limiter = InMemoryRateLimiter()
    for _ in range(5):
        await limiter.check_and_consume("k", 5, 60, NOW)

    assert not (await limiter.check_and_consume("k", 5, 60, NOW + timedelta(seconds=59))).allowed

    decision = await limiter.check_and_consume("k", 5, 60, NOW + timedelta(seconds=60))
    assert decision.allowed
    assert decision.remaining == 4
    assert decision.reset_at == NOW + timedelta(seconds=120)


@pytest.mark.asyncio
async def test_in_memory_keys_are_independent():
    limiter = InMemoryRateLimiter()
    await limiter.check_and_consume("a", 1, 60, NOW)

    assert not (await limiter.check_and_consume("a", 1, 60, NOW)).allowed
    assert (await limiter.check_and_consume("b", 1, 60, NOW)).allowed


@pytest.mark.asyncio
async def test_redis_first_hit_sets_expiry():
    redis = AsyncMock()
    redis.incr.return_value = 1
    limiter = RedisRateLimiter(redis)

    decision = await limiter.check_and_consume("signup:1.2.3.4", 5, 60, NOW)

    assert decision.allowed
    assert decision.remaining == 4
    assert decision.reset_at == NOW + timedelta(seconds=60)
    redis.incr.assert_awaited_once_with("ratelimit:signup:1.2.3.4")
    redis.pexpire.assert_awaited_once_with("ratelimit:signup:1.2.3.4", 60000)


@pytest.mark.asyncio
async def test_redis_denies_over_limit():
    redis = AsyncMock()
    redis.incr.return_value = 6
    redis.pttl.return_value = 30000
    limiter = RedisRateLimiter(redis)

    decision = await limiter.check_and_consume("signup:1.2.3.4", 5, 60, NOW)

    assert not decision.allowed
    assert decision.remaining == 0
    assert decision.reset_at == NOW + timedelta(seconds=30)
    redis.pexpire.assert_not_awaited()
