"""
Registration flow - Code-gated account provisioning.

Registration State Machine
==========================

    COLLECT_USERNAME -> COLLECT_EMAIL -> AWAIT_CODE_CONFIRMATION
        -> COLLECT_FULL_NAME -> SET_PASSWORD -> COMPLETE

The email step is the irreversible one: it creates a real account with a
throwaway placeholder password and sends a code. The token returned at
that point is not kept; only the token returned by code confirmation is
held, and it authorizes exactly one call: setting the real password.

Recovery paths:
- Conflict at the email step (availability check raced with another
  signup) routes back to COLLECT_USERNAME instead of leaving a
  half-provisioned state behind silently.
- A missing or rejected held token at SET_PASSWORD is fatal: the account
  exists with an unknown password, so the user is sent to sign in.
"""

import logging
import secrets

from . import messages
from .exceptions import AuthError, ConflictError, FatalFlowError, StageError
from .flow import FlowController
from .ports import FlowKind, Stage, StepResult
from .session import GUARD_CONFIRM, GUARD_PROVISION, FlowSession
from .validators import (
    validate_code,
    validate_email,
    validate_full_name,
    validate_new_password,
    validate_username,
)

logger = logging.getLogger(__name__)


class RegistrationFlow(FlowController):
    """Controller for the registration state machine."""

    kind = FlowKind.REGISTRATION
    entry_stage = Stage.COLLECT_USERNAME

    async def submit_username(self, session: FlowSession, username: str) -> StepResult:
        """Check availability and keep the username for the email step."""
        self._require(session, Stage.COLLECT_USERNAME)
        value = validate_username(username, self.limits)

        availability = await self._call(self.store.check_username(value))
        if not availability.available:
            raise ConflictError(
                availability.reason or messages.ERROR_USERNAME_TAKEN, field="username"
            )

        session.pending_profile.username = value
        return self._advance(session, Stage.COLLECT_EMAIL)

    async def submit_email(self, session: FlowSession, email: str) -> StepResult:
        """
        Provision the account and send the first code.

        Guarded so a double submit cannot provision twice; once this
        succeeds the stage moves on and a resubmission is rejected.
        """
        self._require(session, Stage.COLLECT_EMAIL)
        value = validate_email(email)
        username = session.pending_profile.username
        if username is None:
            raise StageError(messages.ERROR_WRONG_STAGE, field="username")

        release = session.guard(GUARD_PROVISION).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            try:
                account = await self._call(
                    self.store.create_account(username, value, self._placeholder_password())
                )
            except ConflictError as exc:
                logger.warning("Registration conflict, returning to username step")
                session.pending_profile.username = None
                session.stage = Stage.COLLECT_USERNAME
                exc.field = exc.field or "username"
                raise

            if not account.needs_confirmation:
                self.context.flows.discard(session)
                raise FatalFlowError(messages.ERROR_SESSION_LOST)

            session.bind_email(account.email.strip().lower() if account.email else value)
            session.pending_profile.provisional = True
            session.pending_profile.user = account.user
            session.cooldown.arm()
            logger.info("Provisional account created, code sent")
            return self._advance(session, Stage.AWAIT_CODE_CONFIRMATION)
        finally:
            release()

    async def confirm_code(self, session: FlowSession, code: str) -> StepResult:
        """
        Confirm the emailed code.

        A second submission while one is in flight returns IGNORED without
        a network call. A rejected code leaves the stage unchanged.
        """
        self._require(session, Stage.AWAIT_CODE_CONFIRMATION)
        value = validate_code(code, self.limits)

        release = session.guard(GUARD_CONFIRM).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            confirmation = await self._check_code(
                session, self.store.confirm_email(session.subject_email, value)
            )
            if confirmation.token is None:
                # Confirmed, but the account was already set up: nothing to finalize.
                self._finish(session)
                return StepResult.SIGN_IN_REQUIRED

            session.held_token = confirmation.token
            if confirmation.user is not None:
                session.pending_profile.user = confirmation.user
            session.cooldown.disarm()
            return self._advance(session, Stage.COLLECT_FULL_NAME)
        finally:
            release()

    async def resend_code(self, session: FlowSession) -> StepResult:
        self._require(session, Stage.AWAIT_CODE_CONFIRMATION)
        email = session.subject_email
        return await self._resend(session, lambda: self.store.resend_code(email))

    def submit_full_name(self, session: FlowSession, full_name: str | None) -> StepResult:
        """Optional step; blank input skips it."""
        self._require(session, Stage.COLLECT_FULL_NAME)
        session.pending_profile.full_name = validate_full_name(full_name, self.limits)
        return self._advance(session, Stage.SET_PASSWORD)

    def skip_full_name(self, session: FlowSession) -> StepResult:
        return self.submit_full_name(session, None)

    async def set_password(
        self, session: FlowSession, password: str, confirmation: str
    ) -> StepResult:
        """
        Set the real password and sign in with the held token.

        Raises:
            ValidationError: Password too short/long or not matching
            FatalFlowError: Held token missing or rejected
            TransientError: Timeout or network failure (token kept for retry)
        """
        self._require(session, Stage.SET_PASSWORD)
        password = validate_new_password(password, confirmation, self.limits)

        if session.held_token is None:
            self.context.flows.discard(session)
            logger.warning("Held token missing at password step")
            raise FatalFlowError(messages.ERROR_SESSION_LOST)

        release = session.guard(GUARD_CONFIRM).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            try:
                user = await self._call(
                    self.store.finalize_registration(
                        session.held_token, password, session.pending_profile.full_name
                    )
                )
            except AuthError as exc:
                self.context.flows.discard(session)
                logger.warning("Held token rejected at password step")
                raise FatalFlowError(messages.ERROR_SESSION_EXPIRED) from exc

            token = session.take_held_token()
            self.context.auth.sign_in(token, user)
            self._finish(session)
            return StepResult.COMPLETED
        finally:
            release()

    def go_back(self, session: FlowSession) -> StepResult:
        """Return to the previous editable stage; local only."""
        if session.stage is Stage.COLLECT_EMAIL:
            self._require(session, Stage.COLLECT_EMAIL)
            session.pending_profile.username = None
            return self._advance(session, Stage.COLLECT_USERNAME)
        if session.stage is Stage.SET_PASSWORD:
            self._require(session, Stage.SET_PASSWORD)
            return self._advance(session, Stage.COLLECT_FULL_NAME)
        raise StageError(messages.ERROR_WRONG_STAGE)

    def _placeholder_password(self) -> str:
        """
        Throwaway password for the provisional account.

        Random per attempt and never shown or stored; the real password is
        set with the held token after confirmation.
        """
        return secrets.token_urlsafe(24)
