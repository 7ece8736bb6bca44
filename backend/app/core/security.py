"""Security utilities: password hashing."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from app.core.logging import get_logger

logger = get_logger(__name__)

# Password hasher instance
_password_hasher = PasswordHasher()


def hash_password(plain_password: str) -> str:
    """Hash a plain password using Argon2."""
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Verify a plain password against a hash."""
    if not password_hash:
        return False
    try:
        _password_hasher.verify(password_hash, plain_password)
        return True
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError) as e:
        logger.warning(f"Password verification error: {e}")
        return False
