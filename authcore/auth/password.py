"""
Password hashing and verification using bcrypt.

Only the bcrypt hash is ever stored. Plaintext passwords are passed through
these functions and never logged or serialized.
"""

import bcrypt

from authcore.errors import HashingError
from authcore.validator import Validator

BCRYPT_COST = 12
MIN_PASSWORD_BYTES = 8
MAX_PASSWORD_BYTES = 72  # bcrypt ignores input beyond this


def hash_password(password: str) -> bytes:
    """
    Hash a plaintext password with a fresh salt.

    Args:
        password: The plaintext password

    Returns:
        The bcrypt hash (cost and salt embedded)

    Raises:
        HashingError: If bcrypt rejects the input
    """
    try:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_COST))
    except ValueError as exc:
        raise HashingError("could not hash password") from exc


def verify_password(password: str, password_hash: bytes) -> bool:
    """
    Verify a plaintext password against a stored bcrypt hash.

    The comparison is bcrypt's own constant-time check. An attempt longer
    than bcrypt accepts can never match and is reported as a mismatch.

    Args:
        password: The plaintext attempt
        password_hash: The stored hash

    Returns:
        True if the password matches, False if it does not

    Raises:
        HashingError: If the stored hash is malformed
    """
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash)
    except ValueError as exc:
        raise HashingError("stored password hash is invalid") from exc


def validate_password_plaintext(v: Validator, password: str) -> None:
    """Check the plaintext acceptance policy, measured in UTF-8 bytes."""
    size = len(password.encode("utf-8"))
    v.check(password != "", "password", "must be provided")
    v.check(size >= MIN_PASSWORD_BYTES, "password", "must be at least 8 bytes long")
    v.check(size <= MAX_PASSWORD_BYTES, "password", "must not be more than 72 bytes long")
