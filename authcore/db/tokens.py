"""
Token persistence: issue, store and revoke token digests.
"""

import logging
from datetime import timedelta

from sqlalchemy import insert
from sqlalchemy.orm import Session

from authcore.auth.tokens import Token, TokenScope, generate_token
from authcore.db.database import persistence_errors
from authcore.db.models import TokenRecord

logger = logging.getLogger(__name__)


class TokenModel:
    """
    Stores token digests against their owner, expiry and scope.

    The issuer does not care what a scope means; revoking tokens after use
    is up to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def new(self, user_id: str, ttl: timedelta, scope: TokenScope) -> Token:
        """
        Generate a token and persist it.

        If the insert fails the token is discarded and the error propagates.
        """
        token = generate_token(user_id, ttl, scope)
        self.insert(token)
        logger.info(
            f"Issued {token.scope.value} token for user {user_id}, "
            f"expires {token.expiry.isoformat()}"
        )
        return token

    def insert(self, token: Token) -> None:
        """Store the token digest as a single row."""
        statement = insert(TokenRecord).values(
            hash=token.hash,
            user_id=token.user_id,
            expiry=token.expiry,
            scope=TokenScope(token.scope).value,
        )
        with persistence_errors(self.db, "insert token"):
            self.db.execute(statement)
            self.db.commit()

    def delete_all_for_user(self, scope: TokenScope, user_id: str) -> int:
        """
        Revoke every token of a scope held by a user.

        Deleting nothing is not an error.

        Returns:
            Number of tokens removed
        """
        with persistence_errors(self.db, "delete tokens"):
            deleted = (
                self.db.query(TokenRecord)
                .filter(
                    TokenRecord.scope == TokenScope(scope).value,
                    TokenRecord.user_id == user_id,
                )
                .delete(synchronize_session=False)
            )
            self.db.commit()
        logger.info(f"Revoked {deleted} {TokenScope(scope).value} token(s) for user {user_id}")
        return deleted
