from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: datetime


class RateLimiter(ABC):
    """
    Fixed-window request counter keyed by (action, client identity).

    A call on a missing or expired window opens a new one with count 1.
    The (max_requests + 1)-th call inside a window is denied.
    """

    @abstractmethod
    async def check_and_consume(
        self, key: str, max_requests: int, window_seconds: int, now: datetime
    ) -> RateLimitDecision:
        """Count one request against `key` and decide whether it may proceed"""
        pass
