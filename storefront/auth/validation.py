"""
Client-side input checks run before any auth request is sent.
"""

import re
from typing import Optional

from storefront.errors import ValidationFailure

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def validate_credentials(email: Optional[str], password: Optional[str]) -> None:
    """Raise ValidationFailure unless email and password are usable for login."""
    if not email or not password:
        raise ValidationFailure("Please provide email and password")
    if not is_valid_email(email):
        raise ValidationFailure("Please enter a valid email address")


def validate_registration(name: Optional[str], email: Optional[str], password: Optional[str]) -> None:
    """Raise ValidationFailure unless the registration form is acceptable."""
    if not name or not name.strip():
        raise ValidationFailure("Name is required")
    validate_credentials(email, password)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailure(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
