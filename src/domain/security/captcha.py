"""
Signed arithmetic captcha.

The token binds both operands with an HMAC, so a client cannot swap in
operands of its own choosing and reuse a token.
"""

import secrets
from dataclasses import dataclass

from .hashing import constant_time_compare, hmac_sha256


@dataclass(frozen=True)
class Captcha:
    a: int
    b: int
    token: str


def _sign(secret: str, a: int, b: int) -> str:
    return hmac_sha256(secret, f"{a}:{b}")


def create_captcha(secret: str) -> Captcha:
    a = secrets.randbelow(9) + 1
    b = secrets.randbelow(9) + 1
    return Captcha(a=a, b=b, token=_sign(secret, a, b))


def verify_captcha(secret: str, a: int, b: int, token: str, answer: str) -> bool:
    if not token or not constant_time_compare(token, _sign(secret, a, b)):
        return False
    try:
        value = int(str(answer).strip())
    except ValueError:
        return False
    return value == a + b
