"""
Database configuration, models and persistence.
"""

from authcore.db.database import engine, SessionLocal, get_db
from authcore.db.models import Base, TokenRecord, User, is_anonymous
from authcore.db.tokens import TokenModel
from authcore.db.users import UserModel


class Models:
    """Bundle of the persistence models sharing one session."""

    def __init__(self, db):
        self.users = UserModel(db)
        self.tokens = TokenModel(db)


__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "Base",
    "TokenRecord",
    "User",
    "is_anonymous",
    "Models",
    "TokenModel",
    "UserModel",
]
