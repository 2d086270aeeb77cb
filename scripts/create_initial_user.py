#!/usr/bin/env python3
"""
Create an initial, already-activated user from environment variables.

Usage:
    python scripts/create_initial_user.py

Environment variables (from .env.development or .env.production):
    INITIAL_USER_USERNAME - Username for the user
    INITIAL_USER_EMAIL - Email for the user
    INITIAL_USER_PASSWORD - Password for the user
"""

import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from authcore.auth.password import validate_password_plaintext
from authcore.config import get_settings
from authcore.db import Models
from authcore.db.database import get_db_context, init_db
from authcore.db.models import User
from authcore.db.users import validate_user
from authcore.errors import ConflictError, ValidationError
from authcore.validator import Validator


def create_initial_user():
    """Create the initial user if it doesn't exist."""
    settings = get_settings()

    if not (
        settings.initial_user_username
        and settings.initial_user_email
        and settings.initial_user_password
    ):
        print("Error: INITIAL_USER_USERNAME, INITIAL_USER_EMAIL and INITIAL_USER_PASSWORD must be set")
        print("Please configure these in your .env.development or .env.production file")
        sys.exit(1)

    v = Validator()
    validate_password_plaintext(v, settings.initial_user_password)
    if not v.valid():
        print(f"Error: INITIAL_USER_PASSWORD {v.errors['password']}")
        sys.exit(1)

    user = User(
        username=settings.initial_user_username,
        email=settings.initial_user_email,
        activated=True,
    )
    user.set_password(settings.initial_user_password)

    try:
        validate_user(v, user)
        v.raise_if_invalid()
    except ValidationError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    # Initialize database tables
    init_db()

    with get_db_context() as db:
        try:
            Models(db).users.insert(user)
        except ConflictError as exc:
            print(f"User already exists ({exc})")
            return
        finally:
            user.clear_password_plaintext()

        print(f"Successfully created user: {user.username} <{user.email}>")


if __name__ == "__main__":
    create_initial_user()
