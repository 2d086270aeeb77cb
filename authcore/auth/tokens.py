"""
Token generation and hashing utilities.

Used for activation, authentication and password reset tokens. A token's
plaintext is handed to the client once; only its SHA-256 digest is stored.
"""

import base64
import enum
import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from authcore.errors import RandomSourceError
from authcore.utils import utcnow
from authcore.validator import Validator

TOKEN_BYTES = 16
TOKEN_LENGTH = 26  # unpadded base32 of 16 bytes


class TokenScope(str, enum.Enum):
    """What a token may be used for."""
    activation = "activation"
    authentication = "authentication"
    password_reset = "password-reset"


@dataclass
class Token:
    """
    A freshly issued token.

    ``plaintext`` is the bearer secret and is excluded from ``repr`` so it
    cannot end up in logs by accident.
    """

    plaintext: str = field(repr=False)
    hash: bytes = field(repr=False)
    user_id: str
    expiry: datetime
    scope: TokenScope

    def to_dict(self) -> dict:
        """Client-facing view: the secret and when it stops working, in UTC."""
        expiry = self.expiry.replace(tzinfo=timezone.utc)
        return {"token": self.plaintext, "expiry": expiry.isoformat()}


def hash_token(plaintext: str) -> bytes:
    """
    Create the SHA-256 digest of a token for storage and lookup.

    Args:
        plaintext: The plain token string

    Returns:
        Raw 32-byte digest
    """
    return hashlib.sha256(plaintext.encode()).digest()


def generate_token(user_id: str, ttl: timedelta, scope: TokenScope) -> Token:
    """
    Generate a new token for a user.

    Args:
        user_id: Owner of the token
        ttl: How long the token stays valid from now
        scope: What the token may be used for

    Returns:
        Token carrying its plaintext, digest and expiry

    Raises:
        RandomSourceError: If the secure random source is unavailable
    """
    try:
        random_bytes = secrets.token_bytes(TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise RandomSourceError("secure random source unavailable") from exc

    plaintext = base64.b32encode(random_bytes).decode("ascii").rstrip("=")
    return Token(
        plaintext=plaintext,
        hash=hash_token(plaintext),
        user_id=user_id,
        expiry=utcnow() + ttl,
        scope=TokenScope(scope),
    )


def validate_token_plaintext(v: Validator, plaintext: str) -> None:
    v.check(plaintext != "", "token", "must be provided")
    v.check(len(plaintext) == TOKEN_LENGTH, "token", "must be 26 bytes long")
