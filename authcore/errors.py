"""
Error taxonomy for the credential and token subsystem.

Every failure the core can report derives from ``AuthCoreError`` except
``InvariantViolation``, which signals a programming error and should never be
handled as an ordinary request failure.
"""

from typing import Dict


class AuthCoreError(Exception):
    """Base class for recoverable errors raised by the core."""


class ValidationError(AuthCoreError):
    """Input was rejected before touching the hash primitive or the store."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__(
            "; ".join(f"{key}: {message}" for key, message in self.errors.items())
        )


class NotFoundError(AuthCoreError):
    """No matching record, or no live token for the presented secret."""


RecordNotFoundError = NotFoundError


class ConflictError(AuthCoreError):
    """A write collided with existing state."""


class DuplicateEmailError(ConflictError):
    """A user with this email address already exists."""


class DuplicateUsernameError(ConflictError):
    """A user with this username already exists."""


class EditConflictError(ConflictError):
    """The record was changed by someone else since it was read."""


class HashingError(AuthCoreError):
    """The password hash primitive failed or the stored hash is malformed."""


class RandomSourceError(AuthCoreError):
    """The operating system's secure random source is unavailable."""


class PersistenceError(AuthCoreError):
    """The relational store rejected or failed an operation."""


class UnavailableError(PersistenceError):
    """The store could not be reached. Retrying the whole operation is safe."""


class PersistenceTimeoutError(UnavailableError):
    """The store did not answer within the configured timeout."""


class InvariantViolation(RuntimeError):
    """A programming error: an internal precondition does not hold."""
