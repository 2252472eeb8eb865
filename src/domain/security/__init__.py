"""
Signup security primitives: keyed hashing, AEAD field encryption,
OTP policy and captcha.
"""

from .captcha import Captcha, create_captcha, verify_captcha
from .encryption import decrypt, encrypt
from .hashing import constant_time_compare, hmac_sha256, verify_hmac
from .otp import (
    OtpStatus,
    OtpVerification,
    compute_otp_verification,
    generate_otp,
    hash_otp,
    verify_otp,
)

__all__ = [
    "Captcha",
    "create_captcha",
    "verify_captcha",
    "encrypt",
    "decrypt",
    "hmac_sha256",
    "constant_time_compare",
    "verify_hmac",
    "OtpStatus",
    "OtpVerification",
    "compute_otp_verification",
    "generate_otp",
    "hash_otp",
    "verify_otp",
]
