"""
Email change flow - Confirm a new address for a signed-in account.

    REQUEST_NEW_EMAIL -> AWAIT_CODE_CONFIRMATION -> COMPLETE

Both calls are authorized by the signed-in session token. The code
confirmation is guarded like the registration one.
"""

import logging

from . import messages
from .exceptions import FatalFlowError, StageError, ValidationError
from .flow import FlowController
from .ports import FlowKind, Stage, StepResult
from .session import GUARD_CONFIRM, FlowSession
from .validators import validate_code, validate_email

logger = logging.getLogger(__name__)


class EmailChangeFlow(FlowController):
    """Controller for the email change state machine."""

    kind = FlowKind.EMAIL_CHANGE
    entry_stage = Stage.REQUEST_NEW_EMAIL

    def start(self) -> FlowSession:
        if not self.context.auth.signed_in:
            raise StageError(messages.ERROR_NOT_SIGNED_IN)
        return super().start()

    async def request_change(self, session: FlowSession, email: str) -> StepResult:
        self._require(session, Stage.REQUEST_NEW_EMAIL)
        value = validate_email(email)
        current = self.context.auth.user
        if current is not None and current.email.lower() == value:
            raise ValidationError(messages.ERROR_SAME_EMAIL, field="email")

        await self._call(self.store.request_email_change(self._token(session), value))
        session.bind_email(value)
        session.cooldown.arm()
        return self._advance(session, Stage.AWAIT_CODE_CONFIRMATION)

    async def confirm_code(self, session: FlowSession, code: str) -> StepResult:
        self._require(session, Stage.AWAIT_CODE_CONFIRMATION)
        value = validate_code(code, self.limits)

        release = session.guard(GUARD_CONFIRM).try_enter()
        if release is None:
            return StepResult.IGNORED
        try:
            user = await self._check_code(
                session,
                self.store.confirm_email_change(
                    self._token(session), session.subject_email, value
                ),
            )
            self.context.auth.update_user(user)
            self._finish(session)
            return StepResult.COMPLETED
        finally:
            release()

    async def resend_code(self, session: FlowSession) -> StepResult:
        self._require(session, Stage.AWAIT_CODE_CONFIRMATION)
        token, email = self._token(session), session.subject_email
        return await self._resend(
            session, lambda: self.store.request_email_change(token, email)
        )

    def _token(self, session: FlowSession) -> str:
        token = self.context.auth.token
        if token is None:
            self.context.flows.discard(session)
            logger.warning("Signed out during email change")
            raise FatalFlowError(messages.ERROR_NOT_SIGNED_IN)
        return token
