"""
FastAPI dependencies for authentication.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from authcore.auth.tokens import TokenScope
from authcore.db.database import get_db
from authcore.db.models import User, is_anonymous
from authcore.db.users import UserModel
from authcore.errors import NotFoundError, ValidationError


def get_token_from_request(request: Request) -> Optional[str]:
    """
    Extract a bearer token from the Authorization header.

    Returns:
        Token string if present, None otherwise

    Raises:
        HTTPException 401: If the header is present but not a bearer token
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer" or not token:
        raise invalid_authentication_token()
    return token


def invalid_authentication_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="invalid or missing authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Get the current user if a bearer token was sent, None if none was.

    A token that was sent but does not resolve to a user is rejected rather
    than treated as anonymous.
    """
    token = get_token_from_request(request)
    if token is None:
        return None

    try:
        return UserModel(db).get_for_token(TokenScope.authentication, token)
    except (ValidationError, NotFoundError):
        raise invalid_authentication_token()


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """
    Get the current authenticated user.

    Raises HTTPException 401 if not authenticated.
    """
    if is_anonymous(user):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="you must be authenticated to access this resource",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_activated_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Require the current user to have activated their account.

    Raises HTTPException 403 if not activated.
    """
    if not current_user.activated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="your user account must be activated to access this resource",
        )
    return current_user
