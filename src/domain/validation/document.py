"""
Brazilian tax document validation (CPF for people, CNPJ for companies).
"""

import re
from enum import Enum
from typing import List

_NON_DIGITS = re.compile(r"\D")

CNPJ_FIRST_WEIGHTS = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
CNPJ_SECOND_WEIGHTS = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


class DocumentType(str, Enum):
    cpf = "cpf"
    cnpj = "cnpj"


def normalize_document(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def _check_digit(digits: str, weights: List[int]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def _all_same(digits: str) -> bool:
    return len(set(digits)) == 1


def cpf_check_digits(base: str) -> str:
    """Both check digits for the first 9 digits of a CPF."""
    first = _check_digit(base, list(range(10, 1, -1)))
    second = _check_digit(base + str(first), list(range(11, 1, -1)))
    return f"{first}{second}"


def cnpj_check_digits(base: str) -> str:
    """Both check digits for the first 12 digits of a CNPJ."""
    first = _check_digit(base, CNPJ_FIRST_WEIGHTS)
    second = _check_digit(base + str(first), CNPJ_SECOND_WEIGHTS)
    return f"{first}{second}"


def validate_cpf(value: str) -> bool:
    cpf = normalize_document(value)
    if len(cpf) != 11 or _all_same(cpf):
        return False
    return cpf[9:] == cpf_check_digits(cpf[:9])


def validate_cnpj(value: str) -> bool:
    cnpj = normalize_document(value)
    if len(cnpj) != 14 or _all_same(cnpj):
        return False
    return cnpj[12:] == cnpj_check_digits(cnpj[:12])


def validate_document(value: str, document_type: DocumentType) -> bool:
    if document_type == DocumentType.cnpj:
        return validate_cnpj(value)
    return validate_cpf(value)
