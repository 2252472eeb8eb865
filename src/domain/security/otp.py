"""
One-time passwords for phone verification.

compute_otp_verification is the lockout policy: a pure function of the
stored OTP state and an explicit `now`. Callers persist the returned
attempts / locked_until.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from .hashing import hmac_sha256, verify_hmac

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_LOCKOUT_MINUTES = 15


class OtpStatus(str, Enum):
    valid = "valid"
    invalid = "invalid"
    expired = "expired"
    locked = "locked"


@dataclass(frozen=True)
class OtpVerification:
    status: OtpStatus
    attempts: int
    locked_until: Optional[datetime]


def generate_otp(length: int = 6) -> str:
    return str(secrets.randbelow(10**length)).zfill(length)


def hash_otp(secret: str, otp: str) -> str:
    return hmac_sha256(secret, otp)


def verify_otp(secret: str, otp: str, otp_hash: str) -> bool:
    return verify_hmac(secret, otp, otp_hash)


def compute_otp_verification(
    *,
    now: datetime,
    otp_hash: Optional[str],
    otp: str,
    attempts: int,
    expires_at: Optional[datetime],
    locked_until: Optional[datetime],
    secret: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    lockout_minutes: int = DEFAULT_LOCKOUT_MINUTES,
) -> OtpVerification:
    if locked_until is not None and now < locked_until:
        return OtpVerification(OtpStatus.locked, attempts, locked_until)

    if not otp_hash or expires_at is None or now > expires_at:
        return OtpVerification(OtpStatus.expired, attempts, None)

    if verify_otp(secret, otp, otp_hash):
        return OtpVerification(OtpStatus.valid, attempts, None)

    next_attempts = attempts + 1
    if next_attempts >= max_attempts:
        return OtpVerification(
            OtpStatus.locked,
            next_attempts,
            now + timedelta(minutes=lockout_minutes),
        )

    return OtpVerification(OtpStatus.invalid, next_attempts, None)
