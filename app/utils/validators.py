# app/utils/validators.py
"""
Small input checks shared by the schemas and services.
All functions are pure; they never touch the database.
"""

import re
from typing import Optional

ENTRY_CODE_LENGTH = 14

_DIGITS = re.compile(r"^\d+$")


def normalize_name(name: Optional[str]) -> str:
    """Key used for duplicate-name checks: trimmed and case-insensitive."""
    return (name or "").strip().lower()


def is_valid_entry_code(code: Optional[str]) -> bool:
    """Entry ids / barcodes are exactly 14 ASCII digits (YYYYMMDDhhmmss)."""
    return bool(code) and len(code) == ENTRY_CODE_LENGTH and bool(_DIGITS.match(code))


def is_valid_cpf(cpf: Optional[str]) -> bool:
    return bool(cpf) and len(cpf) == 11 and bool(_DIGITS.match(cpf))


def is_valid_plate(plate: Optional[str]) -> bool:
    return bool(plate) and 7 <= len(plate) <= 8


def only_digits(text: Optional[str]) -> str:
    return re.sub(r"\D", "", text or "")
