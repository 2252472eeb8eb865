from .document import (
    DocumentType,
    cnpj_check_digits,
    cpf_check_digits,
    normalize_document,
    validate_cnpj,
    validate_cpf,
    validate_document,
)
from .password import PasswordChecks, is_strong_password, password_checks
from .phone import normalize_phone_to_e164

__all__ = [
    "DocumentType",
    "cnpj_check_digits",
    "cpf_check_digits",
    "normalize_document",
    "validate_cnpj",
    "validate_cpf",
    "validate_document",
    "PasswordChecks",
    "is_strong_password",
    "password_checks",
    "normalize_phone_to_e164",
]
