"""
Password hashing and verification.
"""
from functools import lru_cache

from passlib.context import CryptContext

from app.core.config import settings

# Password hashing; the salt and cost are embedded in every hash
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify password against hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password

    Returns:
        True if password matches, False otherwise (including unparseable hashes)
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """
    Hash password.

    Args:
        password: Plain text password

    Returns:
        Hashed password
    """
    return pwd_context.hash(password)


@lru_cache
def dummy_password_hash() -> str:
    """Hash checked against on unknown logins so they cost as much as known ones."""
    return pwd_context.hash("certifyhub-unknown-account")
