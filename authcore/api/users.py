"""
User registration, activation and password reset endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from authcore.auth.dependencies import require_activated_user
from authcore.auth.password import validate_password_plaintext
from authcore.auth.tokens import TokenScope, validate_token_plaintext
from authcore.config import get_settings
from authcore.db import Models
from authcore.db.database import get_db
from authcore.db.models import User
from authcore.db.users import validate_email, validate_user, validate_username
from authcore.errors import DuplicateEmailError, DuplicateUsernameError, NotFoundError
from authcore.services.email import EmailService, get_email_service
from authcore.validator import Validator

router = APIRouter(prefix="/v1/users", tags=["users"])
settings = get_settings()


# === Pydantic Schemas ===

class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class ActivateRequest(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    password: str
    token: str


# === Endpoints ===

@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def register_user(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Register a new, unactivated user and mail them an activation token.
    """
    v = Validator()
    validate_username(v, request.username)
    validate_email(v, request.email)
    validate_password_plaintext(v, request.password)
    v.raise_if_invalid()

    user = User(username=request.username, email=request.email, activated=False)
    user.set_password(request.password)
    validate_user(v, user)
    v.raise_if_invalid()

    models = Models(db)
    try:
        models.users.insert(user)
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"email": "a user with this email address already exists"},
        )
    except DuplicateUsernameError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"username": "a user with this username already exists"},
        )
    finally:
        user.clear_password_plaintext()

    token = models.tokens.new(
        user.id, settings.ttl_for(TokenScope.activation), TokenScope.activation
    )
    email_service.send_activation_email(user.email, token, user.username)

    return {"user": user.to_dict()}


@router.put("/activated")
async def activate_user(
    request: ActivateRequest,
    db: Session = Depends(get_db),
):
    """
    Activate a user with an activation token.

    Every outstanding activation token for the user is revoked.
    """
    models = Models(db)
    try:
        user = models.users.get_for_token(TokenScope.activation, request.token)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"token": "invalid or expired activation token"},
        )

    user.activated = True
    models.users.update(user)
    models.tokens.delete_all_for_user(TokenScope.activation, user.id)

    return {"user": user.to_dict()}


@router.put("/password")
async def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    """
    Set a new password using a password reset token.

    Revokes all reset tokens and signs the user out everywhere.
    """
    v = Validator()
    validate_password_plaintext(v, request.password)
    validate_token_plaintext(v, request.token)
    v.raise_if_invalid()

    models = Models(db)
    try:
        user = models.users.get_for_token(TokenScope.password_reset, request.token)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"token": "invalid or expired password reset token"},
        )

    user.set_password(request.password)
    try:
        models.users.update(user)
    finally:
        user.clear_password_plaintext()
    models.tokens.delete_all_for_user(TokenScope.password_reset, user.id)
    models.tokens.delete_all_for_user(TokenScope.authentication, user.id)

    return {"message": "your password was successfully reset"}


@router.get("/me")
async def get_me(current_user: User = Depends(require_activated_user)):
    """
    Get the signed-in user. Only activated accounts may read it.
    """
    return {"user": current_user.to_dict()}
