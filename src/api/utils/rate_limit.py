"""
HTTP rate limiting helpers.

Limits are per client IP and per action, with thresholds from config as
(max requests, window seconds) tuples.
"""

from typing import Tuple

from fastapi import Request, status

from libs.result import Error
from src.api.error import ClientError
from src.app.services.rate_limiter import RateLimiter
from src.domain.base import utc_now


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(
    limiter: RateLimiter, action: str, client_ip: str, limit: Tuple[int, int]
) -> None:
    """
    Raises:
        ClientError: 429 RATE_LIMITED with reset_at when the window is full
    """
    max_requests, window_seconds = limit
    decision = await limiter.check_and_consume(
        f"{action}:{client_ip}", int(max_requests), int(window_seconds), utc_now()
    )
    if not decision.allowed:
        raise ClientError(
            Error(
                "RATE_LIMITED",
                "Muitas solicitações. Tente novamente em instantes.",
                {"reset_at": decision.reset_at.isoformat()},
            ),
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )
