"""
Token issuance endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from authcore.auth.dependencies import get_current_user
from authcore.auth.password import validate_password_plaintext
from authcore.auth.tokens import TokenScope
from authcore.config import get_settings
from authcore.db import Models
from authcore.db.database import get_db
from authcore.db.models import User
from authcore.db.users import validate_email, validate_email_or_username
from authcore.errors import NotFoundError
from authcore.services.email import EmailService, get_email_service
from authcore.validator import Validator

router = APIRouter(prefix="/v1/tokens", tags=["tokens"])
settings = get_settings()


# === Pydantic Schemas ===

class AuthenticationRequest(BaseModel):
    email_or_username: str
    password: str


class EmailRequest(BaseModel):
    email: str


def invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="invalid authentication credentials",
    )


# === Endpoints ===

@router.post("/authentication", status_code=status.HTTP_201_CREATED)
async def create_authentication_token(
    request: AuthenticationRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange a username or email and password for a bearer token.
    """
    v = Validator()
    field, value = validate_email_or_username(v, request.email_or_username)
    validate_password_plaintext(v, request.password)
    v.raise_if_invalid()

    models = Models(db)
    try:
        if field == "email":
            user = models.users.get_by_email(value)
        else:
            user = models.users.get_by_username(value)
    except NotFoundError:
        raise invalid_credentials()

    if not user.password_matches(request.password):
        raise invalid_credentials()

    token = models.tokens.new(
        user.id,
        settings.ttl_for(TokenScope.authentication),
        TokenScope.authentication,
    )
    return {"authentication_token": token.to_dict()}


@router.delete("/authentication")
async def delete_authentication_tokens(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Log out everywhere by revoking every authentication token of the caller.
    """
    revoked = Models(db).tokens.delete_all_for_user(
        TokenScope.authentication, current_user.id
    )
    return {"message": "logged out of all sessions", "revoked": revoked}


@router.post("/activation", status_code=status.HTTP_202_ACCEPTED)
async def create_activation_token(
    request: EmailRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Send a fresh activation token.

    Always answers the same way so the endpoint can't be used to probe
    which addresses are registered.
    """
    v = Validator()
    validate_email(v, request.email)
    v.raise_if_invalid()

    models = Models(db)
    try:
        user = models.users.get_by_email(request.email)
    except NotFoundError:
        user = None

    if user is not None and not user.activated:
        token = models.tokens.new(
            user.id, settings.ttl_for(TokenScope.activation), TokenScope.activation
        )
        email_service.send_activation_email(user.email, token, user.username)

    return {"message": "an email will be sent to you containing activation instructions"}


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def create_password_reset_token(
    request: EmailRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
):
    """
    Send a password reset token to an activated user.

    Always answers the same way to prevent email enumeration.
    """
    v = Validator()
    validate_email(v, request.email)
    v.raise_if_invalid()

    models = Models(db)
    try:
        user = models.users.get_by_email(request.email)
    except NotFoundError:
        user = None

    if user is not None and user.activated:
        token = models.tokens.new(
            user.id,
            settings.ttl_for(TokenScope.password_reset),
            TokenScope.password_reset,
        )
        email_service.send_password_reset_email(user.email, token)

    return {"message": "an email will be sent to you containing password reset instructions"}
