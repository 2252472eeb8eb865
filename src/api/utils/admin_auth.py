"""
Admin API Key Authentication

Validates admin API keys for operator endpoints.
"""

from fastapi import Header, status

from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError
from src.domain.security import constant_time_compare


async def verify_admin_api_key(x_admin_api_key: str = Header(None)):
    """
    Verify admin API key from X-Admin-API-Key header.

    Service-to-service auth for operator tooling (fraud review, sweeps,
    provisioning retries).

    Raises:
        ClientError: 401 if key is missing or invalid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not constant_time_compare(x_admin_api_key, ApplicationConfig.ADMIN_API_KEY):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
