"""
Recovery flow - Password reset gated by ownership and a one-time code.

Recovery State Machine
======================

    REQUEST_EMAIL -> VERIFY_OWNERSHIP -> (SELECT_ACCOUNT)
        -> SEND_AND_VERIFY_CODE -> SET_NEW_PASSWORD -> COMPLETE

Disclosure: the email step always advances to VERIFY_OWNERSHIP whatever
the number of matching accounts. Only accounts whose current password
matches are ever listed, so an unauthenticated caller learns nothing about
which emails are registered or how many accounts share one.

Verification and mutation are separate calls: the code is first checked
with a read-only verify call, and only the final reset consumes it. If the
code expires between the two, the flow returns to the code stage.
"""

import logging

from . import messages
from .exceptions import AuthError, StageError, ValidationError
from .flow import FlowController
from .ports import AccountSummary, ConfirmationPrompt, FlowKind, Stage, StepResult
from .session import GUARD_CONFIRM, FlowSession
from .validators import validate_code, validate_email, validate_new_password

logger = logging.getLogger(__name__)


class RecoveryFlow(FlowController):
    """Controller for the password recovery state machine."""

    kind = FlowKind.RECOVERY
    entry_stage = Stage.REQUEST_EMAIL

    async def request_email(self, session: FlowSession, email: str) -> StepResult:
        """Look up candidate accounts without revealing the result."""
        self._require(session, Stage.REQUEST_EMAIL)
        value = validate_email(email)

        accounts = await self._call(self.store.find_accounts(value))
        session.bind_email(value)
        session.known_accounts = list(accounts)
        return self._advance(session, Stage.VERIFY_OWNERSHIP)

    async def verify_ownership(self, session: FlowSession, password: str) -> StepResult:
        """
        Authenticate the current password against every candidate account.

        Zero matches raise a generic AuthError. One match is selected
        automatically and a code is sent. Several matches are offered for
        selection; accounts whose password did not match are never listed.
        """
        self._require(session, Stage.VERIFY_OWNERSHIP)
        if not password:
            raise ValidationError(messages.ERROR_PASSWORD_REQUIRED, field="password")

        matches = await self._matching_accounts(session, password)
        if not matches:
            logger.warning("Recovery ownership check failed")
            raise AuthError(messages.ERROR_INVALID_CREDENTIALS, field="password")

        if len(matches) == 1:
            session.offer_candidates([])
            return await self._send_code(session, matches[0].id)

        session.offer_candidates(matches)
        return self._advance(session, Stage.SELECT_ACCOUNT)

    async def select_account(self, session: FlowSession, account_id: str) -> StepResult:
        self._require(session, Stage.SELECT_ACCOUNT)
        if account_id not in {a.id for a in session.candidate_accounts}:
            raise ValidationError(messages.ERROR_UNKNOWN_ACCOUNT, field="account_id")
        return await self._send_code(session, account_id)

    async def verify_code(self, session: FlowSession, code: str) -> StepResult:
        """Check the code read-only and keep it for the final reset call."""
        self._require(session, Stage.SEND_AND_VERIFY_CODE)
        value = validate_code(code, self.limits)

        release = session.guard(GUARD_CONFIRM).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            await self._check_code(
                session,
                self.store.verify_reset_code(
                    session.subject_email, session.selected_account_id, value
                ),
            )
            session.verified_code = value
            return self._advance(session, Stage.SET_NEW_PASSWORD)
        finally:
            release()

    async def resend_code(self, session: FlowSession) -> StepResult:
        self._require(session, Stage.SEND_AND_VERIFY_CODE)
        email, account_id = session.subject_email, session.selected_account_id
        return await self._resend(
            session, lambda: self.store.request_reset_code(email, account_id)
        )

    async def set_new_password(
        self,
        session: FlowSession,
        password: str,
        confirmation: str,
        prompt: ConfirmationPrompt,
    ) -> StepResult:
        """
        Consume the verified code and set the new password.

        Asks the prompt for an explicit yes first; a no is IGNORED. On
        success the session is cleared and the user is signed in when the
        server returns a fresh session, else SIGN_IN_REQUIRED is returned.

        Raises:
            ValidationError: Password too short/long or not matching
            AuthError: Code expired or mismatched; session is back at
                SEND_AND_VERIFY_CODE with the verified code dropped
        """
        self._require(session, Stage.SET_NEW_PASSWORD)
        password = validate_new_password(password, confirmation, self.limits)
        if session.verified_code is None:
            raise StageError(messages.ERROR_WRONG_STAGE, field="code")

        if not await prompt.confirm(messages.PROMPT_RESET_TITLE, messages.PROMPT_RESET_MESSAGE):
            return StepResult.IGNORED

        release = session.guard(GUARD_CONFIRM).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            try:
                grant = await self._check_code(
                    session,
                    self.store.reset_password(
                        session.subject_email,
                        session.selected_account_id,
                        session.verified_code,
                        password,
                    ),
                )
            except AuthError as exc:
                logger.warning(
                    "Reset code %s at final step, returning to code stage",
                    "expired" if exc.expired else "rejected",
                )
                session.verified_code = None
                session.stage = Stage.SEND_AND_VERIFY_CODE
                raise

            session.verified_code = None
            self._finish(session)
            if grant is None:
                return StepResult.SIGN_IN_REQUIRED
            self.context.auth.sign_in(grant.token, grant.user)
            return StepResult.COMPLETED
        finally:
            release()

    def go_back(self, session: FlowSession) -> StepResult:
        """Return to the previous stage, dropping what the current one collected."""
        stage = session.stage
        if stage is Stage.SELECT_ACCOUNT:
            self._require(session, stage)
            session.offer_candidates([])
            return self._advance(session, Stage.VERIFY_OWNERSHIP)
        if stage is Stage.SEND_AND_VERIFY_CODE:
            self._require(session, stage)
            session.selected_account_id = None
            session.cooldown.disarm()
            if len(session.candidate_accounts) > 1:
                return self._advance(session, Stage.SELECT_ACCOUNT)
            return self._advance(session, Stage.VERIFY_OWNERSHIP)
        if stage is Stage.SET_NEW_PASSWORD:
            self._require(session, stage)
            session.verified_code = None
            return self._advance(session, Stage.SEND_AND_VERIFY_CODE)
        raise StageError(messages.ERROR_WRONG_STAGE)

    async def _matching_accounts(
        self, session: FlowSession, password: str
    ) -> list[AccountSummary]:
        email = session.subject_email
        if not session.known_accounts:
            # Nothing reported: try the email as login so zero matches look the same.
            try:
                grant = await self._call(self.store.authenticate(email, password))
            except AuthError:
                return []
            return [AccountSummary(id=grant.user.id, username=grant.user.username, email=email)]

        matches = []
        for account in session.known_accounts:
            try:
                await self._call(self.store.authenticate(account.username or email, password))
            except AuthError:
                continue
            matches.append(account)
        return matches

    async def _send_code(self, session: FlowSession, account_id: str) -> StepResult:
        """Request a code for the chosen account, then enter the code stage."""
        await self._call(self.store.request_reset_code(session.subject_email, account_id))
        session.select_account(account_id)
        session.cooldown.arm()
        logger.info("Reset code sent")
        return self._advance(session, Stage.SEND_AND_VERIFY_CODE)
