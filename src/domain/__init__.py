"""
Domain layer - Pure flow logic with zero framework imports.

This package contains the account verification and recovery state
machines. It defines its own port interfaces for the Identity Store and
the UI prompt, ensuring true hexagonal architecture decoupling.
"""

from .cooldown import CooldownTimer
from .email_change import EmailChangeFlow
from .exceptions import (
    AuthError,
    ConflictError,
    FatalFlowError,
    FlowError,
    StageError,
    TransientError,
    ValidationError,
)
from .guard import StepGuard
from .ports import (
    AccountSummary,
    AuthGrant,
    CodeConfirmation,
    ConfirmationPrompt,
    FlowKind,
    IdentityStore,
    ProvisionedAccount,
    Stage,
    StepResult,
    UsernameAvailability,
    UserProfile,
)
from .recovery import RecoveryFlow
from .registration import RegistrationFlow
from .session import AuthSession, ClientContext, FlowRegistry, FlowSession
from .sign_in import SignInService
from .validators import FlowLimits

__all__ = [
    "AccountSummary",
    "AuthError",
    "AuthGrant",
    "AuthSession",
    "ClientContext",
    "CodeConfirmation",
    "ConfirmationPrompt",
    "ConflictError",
    "CooldownTimer",
    "EmailChangeFlow",
    "FatalFlowError",
    "FlowError",
    "FlowKind",
    "FlowLimits",
    "FlowRegistry",
    "FlowSession",
    "IdentityStore",
    "ProvisionedAccount",
    "RecoveryFlow",
    "RegistrationFlow",
    "SignInService",
    "Stage",
    "StageError",
    "StepGuard",
    "StepResult",
    "TransientError",
    "UserProfile",
    "UsernameAvailability",
    "ValidationError",
]
