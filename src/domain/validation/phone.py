import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "55"

_NON_DIGITS = re.compile(r"\D")


def normalize_phone_to_e164(value: str) -> Optional[str]:
    """
    Normalize a phone number to E.164.

    10/11 digit numbers without a country code are treated as Brazilian
    (area code + number). Returns None when fewer than 10 digits remain.
    """
    raw = (value or "").strip()
    if not raw:
        return None

    digits = _NON_DIGITS.sub("", raw)

    if raw.startswith("+"):
        return f"+{digits}" if len(digits) >= 10 else None

    if len(digits) in (10, 11):
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"
    if digits.startswith(DEFAULT_COUNTRY_CODE) and len(digits) >= 12:
        return f"+{digits}"
    return f"+{digits}" if len(digits) >= 10 else None
