from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from config import ApplicationConfig

INTENT_TOKEN_SCOPE = "signup_intent"


def generate_intent_token(intent_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """
    Generate the access token for intent-scoped signup endpoints

    Args:
        intent_id: SignupIntent UUID
        expires_delta: Token lifetime (defaults to INTENT_TOKEN_TTL_MINUTES)

    Returns:
        JWT token string (HS256)
    """
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=ApplicationConfig.INTENT_TOKEN_TTL_MINUTES)
    payload = {
        "intent_id": str(intent_id),
        "scope": INTENT_TOKEN_SCOPE,
        "exp": now + expires_delta,
        "iat": now,
    }
    return jwt.encode(payload, ApplicationConfig.JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode JWT token

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"]
        )
        return payload
    except JWTError:
        return None
