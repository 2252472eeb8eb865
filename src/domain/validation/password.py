import re
from dataclasses import dataclass

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class PasswordChecks:
    has_uppercase: bool
    has_lowercase: bool
    has_special_char: bool
    has_min_length: bool

    @property
    def score(self) -> int:
        return sum(
            [self.has_uppercase, self.has_lowercase, self.has_special_char, self.has_min_length]
        )


def password_checks(password: str) -> PasswordChecks:
    value = password or ""
    return PasswordChecks(
        has_uppercase=bool(re.search(r"[A-Z]", value)),
        has_lowercase=bool(re.search(r"[a-z]", value)),
        has_special_char=bool(re.search(r"[^A-Za-z0-9]", value)),
        has_min_length=len(value) >= MIN_PASSWORD_LENGTH,
    )


def is_strong_password(password: str) -> bool:
    return password_checks(password).score == 4
