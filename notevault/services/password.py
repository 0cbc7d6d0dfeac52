"""
Password hashing and verification using bcrypt.
"""

import re

import bcrypt

MIXED_CASE_DIGIT_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))


def validate_password(password: str, min_length: int = 8) -> tuple[bool, str | None]:
    """Validate password strength.

    Returns (is_valid, error_message).
    """
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"

    if not MIXED_CASE_DIGIT_PATTERN.match(password):
        return False, "Password must contain at least one lowercase letter, one uppercase letter, and one number"

    return True, None
