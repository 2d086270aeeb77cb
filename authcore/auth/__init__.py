"""
Password hashing and token primitives.

Request-level dependencies live in ``authcore.auth.dependencies`` and are
imported from there directly.
"""

from authcore.auth.password import hash_password, verify_password, validate_password_plaintext
from authcore.auth.tokens import (
    Token,
    TokenScope,
    generate_token,
    hash_token,
    validate_token_plaintext,
)

__all__ = [
    "hash_password",
    "verify_password",
    "validate_password_plaintext",
    "Token",
    "TokenScope",
    "generate_token",
    "hash_token",
    "validate_token_plaintext",
]
