"""Custom validation utilities."""

import re

_MOBILE_PREFIXES = ("3", "5", "7", "8", "9")


def validate_vietnamese_phone(phone: str) -> bool:
    """Validate Vietnamese mobile number.

    Accepted formats:
    - +84901234567 (international)
    - 0901234567 (local)
    - 090 123 4567 (local with spaces or dashes)

    Args:
        phone: Phone number to validate

    Returns:
        bool: True if valid Vietnamese mobile format
    """
    cleaned = re.sub(r"[\s\-\.\(\)]", "", phone)

    if cleaned.startswith("+84"):
        rest = cleaned[3:]
        return len(rest) == 9 and rest.isdigit() and rest[0] in _MOBILE_PREFIXES

    if cleaned.startswith("0"):
        return len(cleaned) == 10 and cleaned.isdigit() and cleaned[1] in _MOBILE_PREFIXES

    return False


def normalize_phone(phone: str) -> str:
    """Normalize phone number to local 0XXXXXXXXX format.

    Args:
        phone: Phone number in any accepted format

    Returns:
        str: Phone number like 0901234567, or the input if it can't be normalized
    """
    cleaned = re.sub(r"[^\d+]", "", phone)

    if cleaned.startswith("+84"):
        return "0" + cleaned[3:]

    if cleaned.startswith("84") and len(cleaned) == 11:
        return "0" + cleaned[2:]

    if cleaned.startswith("0"):
        return cleaned

    return phone


def clean_text(value: str | None) -> str:
    """Trim a free-text field, treating None as empty."""
    return (value or "").strip()
