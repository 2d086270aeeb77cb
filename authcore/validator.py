"""
Field validation helpers.

A ``Validator`` collects one message per field; callers run a series of
``check`` calls and then ``raise_if_invalid`` to surface every problem at once.
"""

import re
from typing import Dict, Pattern

from authcore.errors import ValidationError

# HTML5 email address pattern
EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def matches(value: str, rx: Pattern[str]) -> bool:
    """Return True if the value matches the pattern."""
    return rx.match(value) is not None


class Validator:
    """Accumulates field errors."""

    def __init__(self):
        self.errors: Dict[str, str] = {}

    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        # First message for a field wins
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)
