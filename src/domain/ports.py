"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records and interfaces (ports) that the flow
controllers require from the Identity Store and from the UI. Adapters
implement these protocols.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

# Monotonic seconds; injectable so timers can be tested without waiting.
Clock = Callable[[], float]


class FlowKind(str, Enum):
    """Kinds of flow a client context can have live at once (one each)."""

    REGISTRATION = "registration"
    RECOVERY = "recovery"
    EMAIL_CHANGE = "email_change"


class Stage(str, Enum):
    """
    Flow stages.

    Registration:
        COLLECT_USERNAME -> COLLECT_EMAIL -> AWAIT_CODE_CONFIRMATION
        -> COLLECT_FULL_NAME -> SET_PASSWORD -> COMPLETE

    Recovery:
        REQUEST_EMAIL -> VERIFY_OWNERSHIP -> (SELECT_ACCOUNT)
        -> SEND_AND_VERIFY_CODE -> SET_NEW_PASSWORD -> COMPLETE

    Email change:
        REQUEST_NEW_EMAIL -> AWAIT_CODE_CONFIRMATION -> COMPLETE
    """

    COLLECT_USERNAME = "collect_username"
    COLLECT_EMAIL = "collect_email"
    AWAIT_CODE_CONFIRMATION = "await_code_confirmation"
    COLLECT_FULL_NAME = "collect_full_name"
    SET_PASSWORD = "set_password"
    REQUEST_EMAIL = "request_email"
    VERIFY_OWNERSHIP = "verify_ownership"
    SELECT_ACCOUNT = "select_account"
    SEND_AND_VERIFY_CODE = "send_and_verify_code"
    SET_NEW_PASSWORD = "set_new_password"
    REQUEST_NEW_EMAIL = "request_new_email"
    COMPLETE = "complete"


class StepResult(str, Enum):
    """
    Outcome of a flow action that did not raise.

    IGNORED is the deliberate no-op: a duplicate submission rejected by the
    step guard, a resend before the cooldown elapsed, or a declined prompt.
    No network call was made in that case.
    """

    ADVANCED = "advanced"
    RESENT = "resent"
    IGNORED = "ignored"
    COMPLETED = "completed"
    SIGN_IN_REQUIRED = "sign_in_required"


@dataclass(frozen=True)
class UserProfile:
    """Account snapshot as returned by the Identity Store."""

    id: str
    username: str
    email: str
    full_name: str | None = None
    is_admin: bool = False
    email_verified: bool = True


@dataclass(frozen=True)
class AccountSummary:
    """Minimal account listing used to pick a recovery target."""

    id: str
    username: str | None
    email: str


@dataclass(frozen=True)
class UsernameAvailability:
    available: bool
    reason: str | None = None


@dataclass(frozen=True)
class ProvisionedAccount:
    """Result of creating a provisional account."""

    needs_confirmation: bool
    email: str
    token: str | None = None
    user: UserProfile | None = None


@dataclass(frozen=True)
class CodeConfirmation:
    """Result of a registration code confirmation; token absent when already confirmed."""

    token: str | None = None
    user: UserProfile | None = None


@dataclass(frozen=True)
class AuthGrant:
    """Bearer token plus the profile it was issued for."""

    token: str
    user: UserProfile


class IdentityStore(Protocol):
    """
    Port interface for the Identity Store endpoints.

    Implementations raise the domain exceptions: ConflictError for taken
    usernames/emails, AuthError for rejected credentials or codes,
    TransientError for timeouts and network failures.
    """

    async def check_username(self, username: str) -> UsernameAvailability:
        """Read-only availability check."""
        ...

    async def create_account(self, username: str, email: str, password: str) -> ProvisionedAccount:
        """
        Create a provisional account and send a code to its email.

        Irreversible: the account row persists even if the flow is abandoned.
        """
        ...

    async def confirm_email(self, email: str, code: str) -> CodeConfirmation:
        """Consume a registration code."""
        ...

    async def resend_code(self, email: str) -> None:
        """Send a fresh registration code."""
        ...

    async def find_accounts(self, email: str) -> list[AccountSummary]:
        """List accounts associated with an email for recovery."""
        ...

    async def authenticate(self, login: str, password: str) -> AuthGrant:
        """Check a password against one account."""
        ...

    async def request_reset_code(self, email: str, account_id: str) -> None:
        """Send a password reset code bound to one account."""
        ...

    async def verify_reset_code(self, email: str, account_id: str, code: str) -> None:
        """Check a reset code without consuming it or mutating the password."""
        ...

    async def finalize_registration(
        self, token: str, password: str, full_name: str | None
    ) -> UserProfile:
        """Set the real password and full name, authorized by the held token."""
        ...

    async def reset_password(
        self, email: str, account_id: str, code: str, password: str
    ) -> AuthGrant | None:
        """Consume a reset code and set a new password; may return a fresh session."""
        ...

    async def request_email_change(self, token: str, email: str) -> None:
        """Send a code to a prospective new email."""
        ...

    async def confirm_email_change(self, token: str, email: str, code: str) -> UserProfile:
        """Consume an email change code and return the updated profile."""
        ...


class ConfirmationPrompt(Protocol):
    """Port interface for the yes/no prompt shown before destructive actions."""

    async def confirm(self, title: str, message: str) -> bool:
        """Return True if the user agreed."""
        ...
