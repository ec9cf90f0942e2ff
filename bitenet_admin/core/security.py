"""
Security helpers: password hashing and generated identifiers.
"""

import random
import secrets
import string
from typing import Optional

import bcrypt

BCRYPT_ROUNDS = 10

_CODE_ALPHABET = string.ascii_letters + string.digits


def encode_password(password: str) -> str:
    """Hash a plain-text password with bcrypt (surrounding whitespace ignored)."""
    hashed = bcrypt.hashpw(password.strip().encode("utf-8"), bcrypt.gensalt(BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def compare_password(password: Optional[str], hashed: Optional[str]) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    if not password or not hashed:
        return False
    return bcrypt.checkpw(password.strip().encode("utf-8"), hashed.encode("utf-8"))


def as_account(phone_area_code: str, phone: str) -> str:
    """Build the ``<area code>-<phone>`` account name used for phone logins."""
    return f"{phone_area_code}-{phone}"


def generate_unique_string(length: int = 16) -> str:
    """Random alphanumeric string, used as a restaurant's public code."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_index_code() -> str:
    """``SX`` followed by six digits, the short code printed on restaurant material."""
    return f"SX{random.randint(100000, 999999)}"
