"""
Input validation predicates for user data.
Used as building blocks for custom validation rules.
"""

import re
from typing import Optional

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{9,14}$")
_POSTAL_CODE_PATTERN = re.compile(r"^\d{5,6}$")


def validate_email(email: str) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address string

    Returns:
        True if valid format, False otherwise
    """
    if not email or not isinstance(email, str):
        return False

    return bool(_EMAIL_PATTERN.match(email.strip()))


def validate_phone(phone: str) -> bool:
    """
    Validate phone number format.
    Accepts 10-digit local numbers and international format with + prefix.

    Args:
        phone: Phone number string

    Returns:
        True if valid format, False otherwise
    """
    if not phone or not isinstance(phone, str):
        return False

    # Remove spaces, dashes, parentheses
    cleaned = re.sub(r"[\s\-\(\)]", "", phone)
    return bool(_PHONE_PATTERN.match(cleaned))


def validate_postal_code(postal_code: str) -> bool:
    """Validate a 5-6 digit postal code."""
    if not postal_code or not isinstance(postal_code, str):
        return False
    return bool(_POSTAL_CODE_PATTERN.match(postal_code))


def sanitize_text(text: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize user input text.

    Args:
        text: Input text
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove control characters except newlines and tabs
    sanitized = re.sub(r"[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]", "", str(text))
    sanitized = sanitized.strip()

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
