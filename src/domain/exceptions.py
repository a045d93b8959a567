"""
Domain exceptions - Error taxonomy for account verification flows.

Every failure a flow action can surface derives from FlowError and carries
a user-facing message plus, where it is tied to one input, the field name
the UI should annotate.
"""


class FlowError(Exception):
    """Base class for verification and recovery flow errors."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(FlowError):
    """Client-side field check failed. No network call was made."""

    pass


class ConflictError(FlowError):
    """Username or email already taken. Session was routed back."""

    pass


class AuthError(FlowError):
    """Wrong password, or invalid/expired verification code."""

    def __init__(self, message: str, field: str | None = None, expired: bool = False) -> None:
        super().__init__(message, field)
        self.expired = expired


class TransientError(FlowError):
    """Timeout or network failure. Stage unchanged, retry allowed."""

    pass


class FatalFlowError(FlowError):
    """Flow cannot continue; the user has to sign in instead."""

    pass


class StageError(FlowError):
    """Action does not apply to the current stage or session."""

    pass
