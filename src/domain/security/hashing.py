"""
Keyed hashing helpers.

HMAC-SHA256 is used for OTP hashes and for the document/phone lookup hashes
that allow duplicate detection without querying plaintext.
"""

import hashlib
import hmac


def hmac_sha256(secret: str, value: str) -> str:
    return hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def constant_time_compare(a: str, b: str) -> bool:
    # Length is safe to leak; content is not.
    left = a.encode("utf-8")
    right = b.encode("utf-8")
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)


def verify_hmac(secret: str, value: str, expected_hex: str) -> bool:
    return constant_time_compare(hmac_sha256(secret, value), expected_hex)
