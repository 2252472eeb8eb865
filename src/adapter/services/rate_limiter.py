"""
Rate limiter backends.

InMemoryRateLimiter serves a single process; RedisRateLimiter shares the
counters between workers. Both implement the same fixed window.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, Tuple

from redis.asyncio import Redis

from src.app.services.rate_limiter import RateLimitDecision, RateLimiter

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:"


class InMemoryRateLimiter(RateLimiter):
    """Process-local counters: key -> (count, reset_at)"""

    def __init__(self):
        self._windows: Dict[str, Tuple[int, datetime]] = {}
        self._lock = threading.Lock()

    async def check_and_consume(
        self, key: str, max_requests: int, window_seconds: int, now: datetime
    ) -> RateLimitDecision:
        with self._lock:
            entry = self._windows.get(key)
            if entry is None or now >= entry[1]:
                reset_at = now + timedelta(seconds=window_seconds)
                self._windows[key] = (1, reset_at)
                return RateLimitDecision(True, max(max_requests - 1, 0), reset_at)

            count, reset_at = entry
            if count >= max_requests:
                return RateLimitDecision(False, 0, reset_at)

            count += 1
            self._windows[key] = (count, reset_at)
            return RateLimitDecision(True, max_requests - count, reset_at)

    def reset(self):
        with self._lock:
            self._windows.clear()


class RedisRateLimiter(RateLimiter):
    """
    Shared counters in Redis.

    INCR is atomic per key; the first hit of a window sets the expiry, so
    the window is anchored on the first request like the in-memory backend.
    """

    def __init__(self, redis_client: Redis):
        self._redis = redis_client

    def _key(self, key: str) -> str:
        return f"{RATE_LIMIT_PREFIX}{key}"

    async def check_and_consume(
        self, key: str, max_requests: int, window_seconds: int, now: datetime
    ) -> RateLimitDecision:
        redis_key = self._key(key)
        count = await self._redis.incr(redis_key)
        if count == 1:
            await self._redis.pexpire(redis_key, window_seconds * 1000)
            ttl_ms = window_seconds * 1000
        else:
            ttl_ms = await self._redis.pttl(redis_key)
            if ttl_ms is None or ttl_ms < 0:
                # Key lost its expiry (crash between INCR and PEXPIRE)
                await self._redis.pexpire(redis_key, window_seconds * 1000)
                ttl_ms = window_seconds * 1000

        reset_at = now + timedelta(milliseconds=ttl_ms)
        if count > max_requests:
            logger.debug(f"Rate limit exceeded for {key}")
            return RateLimitDecision(False, 0, reset_at)
        return RateLimitDecision(True, max_requests - count, reset_at)
