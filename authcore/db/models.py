"""
SQLAlchemy ORM models for users and their tokens.
"""

from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

from authcore.auth.password import hash_password, verify_password
from authcore.errors import InvariantViolation
from authcore.utils import generate_uuid, utcnow

Base = declarative_base()


class User(Base):
    """
    User model for authentication.

    The password hash is the only persisted form of the password. The
    plaintext given to ``set_password`` is kept on the instance, unmapped, so
    the caller can validate it in the same request.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    username = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(LargeBinary(60), nullable=False)
    activated = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False)

    tokens = relationship(
        "TokenRecord",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="dynamic",
    )

    __mapper_args__ = {"version_id_col": version}

    _password_plaintext = None

    def set_password(self, plaintext: str) -> None:
        """Hash and store a new password."""
        self.password_hash = hash_password(plaintext)
        self._password_plaintext = plaintext

    def password_matches(self, plaintext: str) -> bool:
        """
        Check a password attempt.

        Returns False for a wrong password. Raises HashingError if the stored
        hash is unusable.
        """
        if not self.password_hash:
            raise InvariantViolation("missing password hash for user")
        return verify_password(plaintext, self.password_hash)

    @property
    def password_plaintext(self) -> Optional[str]:
        return self._password_plaintext

    def clear_password_plaintext(self) -> None:
        self._password_plaintext = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "username": self.username,
            "email": self.email,
            "activated": self.activated,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id!r} username={self.username!r}>"


# citext-style uniqueness for usernames
Index("ix_users_username_lower", func.lower(User.username), unique=True)


class TokenRecord(Base):
    """
    Stored form of a token: its SHA-256 digest, never the plaintext.

    Rows are inserted once and only ever deleted.
    """

    __tablename__ = "tokens"
    __table_args__ = (Index("ix_tokens_scope_user_id", "scope", "user_id"),)

    hash = Column(LargeBinary(32), primary_key=True)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expiry = Column(DateTime, nullable=False)
    scope = Column(String(32), nullable=False)

    user = relationship("User", back_populates="tokens")

    def __repr__(self) -> str:
        return f"<TokenRecord user_id={self.user_id!r} scope={self.scope!r}>"


def is_anonymous(user: Optional[User]) -> bool:
    """True when a request carries no authenticated user."""
    return user is None
