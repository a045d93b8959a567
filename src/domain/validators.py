"""
Field validation - Client-side checks run before any network call.

Each validator returns the normalized value or raises ValidationError
annotated with the offending field.
"""

import re
from dataclasses import dataclass

from . import messages
from .exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Letters of any script, digits, underscore and hyphen.
_USERNAME_RE = re.compile(r"^[\w-]+$")


@dataclass(frozen=True)
class FlowLimits:
    """Field bounds shared by all flows."""

    username_min_length: int = 3
    username_max_length: int = 50
    password_min_length: int = 6
    password_max_length: int = 100
    full_name_max_length: int = 100
    code_length: int = 6


def validate_username(username: str | None, limits: FlowLimits) -> str:
    value = (username or "").strip()
    if not value:
        raise ValidationError(messages.ERROR_USERNAME_REQUIRED, field="username")
    if len(value) < limits.username_min_length:
        raise ValidationError(
            messages.ERROR_USERNAME_TOO_SHORT.format(min=limits.username_min_length),
            field="username",
        )
    if len(value) > limits.username_max_length:
        raise ValidationError(
            messages.ERROR_USERNAME_TOO_LONG.format(max=limits.username_max_length),
            field="username",
        )
    if not _USERNAME_RE.match(value):
        raise ValidationError(messages.ERROR_USERNAME_CHARSET, field="username")
    return value


def validate_email(email: str | None) -> str:
    """
    Structural email check.

    Returns the normalized address (strip + lowercase), the form the
    Identity Store keys accounts by.
    """
    value = (email or "").strip()
    if not value:
        raise ValidationError(messages.ERROR_EMAIL_REQUIRED, field="email")
    if not _EMAIL_RE.match(value):
        raise ValidationError(messages.ERROR_EMAIL_FORMAT, field="email")
    return value.lower()


def validate_code(code: str | None, limits: FlowLimits) -> str:
    value = (code or "").strip()
    if len(value) != limits.code_length or not value.isascii() or not value.isdigit():
        raise ValidationError(
            messages.ERROR_CODE_FORMAT.format(length=limits.code_length), field="code"
        )
    return value


def validate_new_password(password: str | None, confirmation: str | None, limits: FlowLimits) -> str:
    """Check length bounds, then that both entries match."""
    if not password:
        raise ValidationError(messages.ERROR_PASSWORD_REQUIRED, field="password")
    if len(password) < limits.password_min_length:
        raise ValidationError(
            messages.ERROR_PASSWORD_TOO_SHORT.format(min=limits.password_min_length),
            field="password",
        )
    if len(password) > limits.password_max_length:
        raise ValidationError(
            messages.ERROR_PASSWORD_TOO_LONG.format(max=limits.password_max_length),
            field="password",
        )
    if password != confirmation:
        raise ValidationError(messages.ERROR_PASSWORD_MISMATCH, field="confirmation")
    return password


def validate_full_name(full_name: str | None, limits: FlowLimits) -> str | None:
    """Optional; blank input means skipped."""
    value = (full_name or "").strip()
    if not value:
        return None
    if len(value) > limits.full_name_max_length:
        raise ValidationError(
            messages.ERROR_FULL_NAME_TOO_LONG.format(max=limits.full_name_max_length),
            field="full_name",
        )
    return value
