"""Reusable field validators for membership forms.

Each validator takes the raw value and returns it (possibly normalized) or
raises ValueError with the message shown inline under the form field.
Rules are deliberately permissive where the library has not committed to
stricter ones (phone digits, postal code per country, minimum age).
"""

import re

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
ZIP_CODE_REGEX = re.compile(r"^[0-9A-Za-z\s\-]+$")


def validate_min_length(value: str, minimum: int, message: str) -> str:
    """Require at least `minimum` characters (whitespace counts, as typed)."""
    if value is None or len(value) < minimum:
        raise ValueError(message)
    return value


def validate_required(value: str, message: str) -> str:
    if not value:
        raise ValueError(message)
    return value


def validate_email(value: str) -> str:
    """Validate email address.

    Args:
        value: Email address

    Returns:
        Email address with surrounding whitespace removed

    Raises:
        ValueError: If email is invalid
    """
    value = (value or "").strip()

    if len(value) > 254:  # RFC 5321
        raise ValueError("Email address too long")

    if not EMAIL_REGEX.match(value):
        raise ValueError("Invalid email address")

    return value


def validate_zip_code(value: str) -> str:
    """Letters, digits, spaces and hyphens only; must not be empty."""
    if not value:
        raise ValueError("ZIP code is required")
    if not ZIP_CODE_REGEX.match(value):
        raise ValueError(
            "ZIP code can only contain letters, numbers, spaces, and hyphens"
        )
    return value
