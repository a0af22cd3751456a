"""
Validation Helpers Module

Shared input checks for phone numbers, emails, URLs and passwords. Format
checks delegate to pydantic types; phone handling is the progressive
NNN-NNN-NNNN formatter used by the client screens.
"""
import re
from typing import Optional, Tuple

from pydantic import AnyUrl, EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

PHONE_TOO_SHORT = "Phone number must have 10 digits (e.g., 714-270-8047)"
PHONE_TOO_LONG = "Phone number has too many digits. Expected format: 714-270-8047"

_NON_DIGITS = re.compile(r"\D")

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(AnyUrl)


def format_phone_number(value: Optional[str]) -> str:
    """
    Strip non-digits and reformat progressively as NNN, NNN-NNN, NNN-NNN-NNNN.

    Digits beyond the tenth are dropped from the formatted output;
    validate_phone_number() is what rejects them.
    """
    cleaned = _NON_DIGITS.sub("", value or "")

    if len(cleaned) == 0:
        return ""
    if len(cleaned) <= 3:
        return cleaned
    if len(cleaned) <= 6:
        return f"{cleaned[:3]}-{cleaned[3:]}"
    return f"{cleaned[:3]}-{cleaned[3:6]}-{cleaned[6:10]}"


def validate_phone_number(value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Check a phone number by digit count.

    Returns:
        (is_valid, error_message). Empty input is valid because phone is optional.
    """
    cleaned = _NON_DIGITS.sub("", value or "")

    if len(cleaned) == 0:
        return True, None
    if len(cleaned) < 10:
        return False, PHONE_TOO_SHORT
    if len(cleaned) > 10:
        return False, PHONE_TOO_LONG
    return True, None


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        return False
    return True


def is_valid_url(url: Optional[str]) -> bool:
    """True when `url` parses as an absolute URL with a scheme."""
    if not url or not url.strip():
        return False
    try:
        _url_adapter.validate_python(url.strip())
    except PydanticValidationError:
        return False
    return True


def check_password_strength(password: str) -> Tuple[bool, str]:
    """
    At least 8 characters, 1 uppercase, 1 lowercase, 1 number.
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r"[0-9]", password):
        return False, "Password must contain at least one number"
    return True, "Password is strong"


def sanitize_input(value: str) -> str:
    """Remove angle brackets, javascript: URLs and inline event handlers."""
    value = re.sub(r"[<>]", "", value)
    value = re.sub(r"javascript:", "", value, flags=re.IGNORECASE)
    value = re.sub(r"on\w+=", "", value, flags=re.IGNORECASE)
    return value.strip()
