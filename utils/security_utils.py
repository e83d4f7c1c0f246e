"""
Security utilities for account form validation
"""
import re

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

MIN_PASSWORD_LENGTH = 8


def validate_email(email: str) -> bool:
    """Validate email format"""
    return EMAIL_PATTERN.match(email or "") is not None


def validate_password_strength(password: str) -> None:
    """
    Validate an account password.

    Raises:
        ValueError: If the password is empty or shorter than MIN_PASSWORD_LENGTH
    """
    if not password:
        raise ValueError("Password cannot be empty")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if password.strip() != password:
        raise ValueError("Password cannot start or end with whitespace")
