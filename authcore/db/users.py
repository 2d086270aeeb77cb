"""
User persistence and user field validation.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from authcore.auth.password import validate_password_plaintext
from authcore.auth.tokens import TokenScope, hash_token, validate_token_plaintext
from authcore.db.database import persistence_errors
from authcore.db.models import TokenRecord, User
from authcore.errors import (
    DuplicateEmailError,
    DuplicateUsernameError,
    EditConflictError,
    InvariantViolation,
    PersistenceError,
    RecordNotFoundError,
)
from authcore.utils import utcnow
from authcore.validator import EMAIL_RX, Validator, matches

logger = logging.getLogger(__name__)


def validate_email(v: Validator, email: str) -> None:
    v.check(email != "", "email", "must be provided")
    v.check(matches(email, EMAIL_RX), "email", "must be a valid email address")


def validate_username(v: Validator, username: str) -> None:
    size = len(username.encode("utf-8"))
    v.check(username != "", "username", "must be provided")
    v.check(size >= 3, "username", "must be at least 3 bytes long")
    v.check(size <= 15, "username", "must not be more than 15 bytes long")


def validate_email_or_username(v: Validator, identifier: str) -> Tuple[str, str]:
    """
    Classify a login identifier.

    Returns:
        ("email", value) if it looks like an email address, else ("username", value)
    """
    v.check(identifier != "", "email_or_username", "must be provided")
    if matches(identifier, EMAIL_RX):
        return "email", identifier
    return "username", identifier


def validate_user(v: Validator, user: User) -> None:
    """
    Validate a user before it is written.

    Raises:
        InvariantViolation: If the user has no password hash at all
    """
    validate_username(v, user.username or "")
    validate_email(v, user.email or "")
    if user.password_plaintext is not None:
        validate_password_plaintext(v, user.password_plaintext)

    if not user.password_hash:
        raise InvariantViolation("missing password hash for user")


def _violated_constraint(exc: IntegrityError) -> str:
    """
    Name the unique constraint or index behind an IntegrityError.

    psycopg2 reports it directly. Otherwise only the first line of the driver
    message is used; the lines after it can echo the offending values.
    """
    diag = getattr(exc.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name.lower()
    lines = str(exc.orig).splitlines()
    return lines[0].lower() if lines else ""


def _unique_violation(exc: IntegrityError) -> Exception:
    constraint = _violated_constraint(exc)
    if "ix_users_username_lower" in constraint or "users.username" in constraint:
        return DuplicateUsernameError("duplicate username")
    if "ix_users_email" in constraint or "users.email" in constraint:
        return DuplicateEmailError("duplicate email")
    return PersistenceError("user write rejected by the database")


class UserModel:
    """Reads and writes user records."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, user: User) -> None:
        """
        Insert a new user. ``id``, ``created_at`` and ``version`` are filled in.

        Raises:
            DuplicateEmailError, DuplicateUsernameError: On unique violations
        """
        user.email = user.email.lower()
        with persistence_errors(self.db, "insert user"):
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                raise _unique_violation(exc) from exc
            self.db.refresh(user)
        logger.info(f"Created user {user.id}")

    def get_by_email(self, email: str) -> User:
        with persistence_errors(self.db, "get user by email"):
            user = self.db.query(User).filter(User.email == email.lower()).first()
        if user is None:
            raise RecordNotFoundError("record not found")
        return user

    def get_by_username(self, username: str) -> User:
        with persistence_errors(self.db, "get user by username"):
            user = (
                self.db.query(User)
                .filter(func.lower(User.username) == username.lower())
                .first()
            )
        if user is None:
            raise RecordNotFoundError("record not found")
        return user

    def update(self, user: User) -> None:
        """
        Write changes to a user loaded earlier.

        The row is only updated if its version is unchanged since it was read.

        Raises:
            EditConflictError: If someone else updated the user first
        """
        user.email = user.email.lower()
        with persistence_errors(self.db, "update user"):
            try:
                self.db.add(user)
                self.db.commit()
            except StaleDataError as exc:
                self.db.rollback()
                raise EditConflictError("edit conflict") from exc
            except IntegrityError as exc:
                self.db.rollback()
                raise _unique_violation(exc) from exc

    def get_for_token(
        self,
        scope: TokenScope,
        plaintext: str,
        now: Optional[datetime] = None,
    ) -> User:
        """
        Resolve the owner of a live token.

        The plaintext is format-checked before it is hashed or looked up.
        A wrong secret, an expired token, a different scope and a revoked
        token all give the same RecordNotFoundError.

        Raises:
            ValidationError: If the plaintext is not a well-formed token
            RecordNotFoundError: If no live token of this scope matches
        """
        v = Validator()
        validate_token_plaintext(v, plaintext)
        v.raise_if_invalid()

        scope = TokenScope(scope)
        token_hash = hash_token(plaintext)
        if now is None:
            now = utcnow()

        with persistence_errors(self.db, "get user for token"):
            user = (
                self.db.query(User)
                .join(TokenRecord, TokenRecord.user_id == User.id)
                .filter(
                    TokenRecord.hash == token_hash,
                    TokenRecord.scope == scope.value,
                    TokenRecord.expiry > now,
                )
                .first()
            )

        if user is None:
            logger.debug(f"No live {scope.value} token matched")
            raise RecordNotFoundError("record not found")
        return user
