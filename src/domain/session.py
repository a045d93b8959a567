"""
Flow state - Client-held state for in-progress flows.

A FlowSession is an explicit value: controllers receive it as an argument
and mutate only the session they were given. The FlowRegistry decides
which session of each kind is live; the AuthSession is what a completed
flow signs into. Neither is persisted: a fresh ClientContext starts empty.
"""

import logging
import time
from dataclasses import dataclass, field

from . import messages
from .cooldown import CooldownTimer
from .exceptions import StageError
from .guard import StepGuard
from .ports import AccountSummary, Clock, FlowKind, Stage, UserProfile

logger = logging.getLogger(__name__)

# Guard names, one per confirmable action.
GUARD_PROVISION = "provision"
GUARD_CONFIRM = "confirm"


@dataclass
class PendingProfile:
    """Registration fields not yet persisted with real values."""

    username: str | None = None
    full_name: str | None = None
    provisional: bool = False
    user: UserProfile | None = None


@dataclass(eq=False)
class FlowSession:
    """
    State of one registration, recovery or email change attempt.

    subject_email is bound once and then immutable. held_token is present
    only after the Identity Store confirmed a code for subject_email.
    candidate_accounts and selected_account_id are recovery-only.
    """

    kind: FlowKind
    stage: Stage
    cooldown: CooldownTimer
    pending_profile: PendingProfile = field(default_factory=PendingProfile)
    held_token: str | None = None
    candidate_accounts: list[AccountSummary] = field(default_factory=list)
    selected_account_id: str | None = None
    verified_code: str | None = None
    # Recovery matches reported by the store; never shown before ownership is proven.
    known_accounts: list[AccountSummary] = field(default_factory=list, repr=False)
    _subject_email: str | None = None
    _guards: dict[str, StepGuard] = field(default_factory=dict, repr=False)

    @property
    def subject_email(self) -> str | None:
        return self._subject_email

    def bind_email(self, email: str) -> None:
        if self._subject_email is not None and self._subject_email != email:
            raise StageError(messages.ERROR_WRONG_STAGE, field="email")
        self._subject_email = email

    @property
    def resend_deadline(self) -> float | None:
        return self.cooldown.deadline

    def guard(self, action: str) -> StepGuard:
        return self._guards.setdefault(action, StepGuard())

    @property
    def guard_flag(self) -> bool:
        """True while any confirmation call of this session is in flight."""
        return any(g.held for g in self._guards.values())

    def offer_candidates(self, accounts: list[AccountSummary]) -> None:
        if self.kind is not FlowKind.RECOVERY:
            raise StageError(messages.ERROR_WRONG_STAGE)
        self.candidate_accounts = list(accounts)

    def select_account(self, account_id: str) -> None:
        if self.kind is not FlowKind.RECOVERY:
            raise StageError(messages.ERROR_WRONG_STAGE)
        self.selected_account_id = account_id

    def take_held_token(self) -> str | None:
        """Hand the held token out for its single privileged use."""
        token, self.held_token = self.held_token, None
        return token


@dataclass
class AuthSession:
    """Signed-in state of one client context."""

    token: str | None = None
    user: UserProfile | None = None

    @property
    def signed_in(self) -> bool:
        return self.token is not None and self.user is not None

    def sign_in(self, token: str, user: UserProfile) -> None:
        self.token = token
        self.user = user
        logger.info("Signed in as user %s", user.id)

    def update_user(self, user: UserProfile) -> None:
        self.user = user

    def sign_out(self) -> None:
        self.token = None
        self.user = None


class FlowRegistry:
    """Holds at most one live FlowSession per kind."""

    def __init__(self, clock: Clock = time.monotonic, cooldown_seconds: int = 60) -> None:
        self._clock = clock
        self._cooldown_seconds = cooldown_seconds
        self._live: dict[FlowKind, FlowSession] = {}

    def start(self, kind: FlowKind, stage: Stage) -> FlowSession:
        """Create a session, discarding any live one of the same kind (no merge)."""
        if kind in self._live:
            logger.info("Discarding previous %s flow", kind.value)
        session = FlowSession(
            kind=kind,
            stage=stage,
            cooldown=CooldownTimer(seconds=self._cooldown_seconds, clock=self._clock),
        )
        self._live[kind] = session
        return session

    def get(self, kind: FlowKind) -> FlowSession | None:
        return self._live.get(kind)

    def is_live(self, session: FlowSession) -> bool:
        return self._live.get(session.kind) is session

    def discard(self, session: FlowSession) -> None:
        """Drop the session if it is still the live one; clears its secrets either way."""
        if self.is_live(session):
            del self._live[session.kind]
        session.held_token = None
        session.verified_code = None
        session.cooldown.disarm()


@dataclass
class ClientContext:
    """One client (browser tab): its flows and its signed-in state."""

    flows: FlowRegistry
    auth: AuthSession = field(default_factory=AuthSession)
