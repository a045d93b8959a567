"""
Sign in and sign out for a returning user.

Completed flows sign the client in themselves; this service covers the
user who already has a password, which is also where flows ending in
SIGN_IN_REQUIRED send them.
"""

import asyncio
import logging
from dataclasses import dataclass

from . import messages
from .exceptions import TransientError, ValidationError
from .ports import FlowKind, IdentityStore, UserProfile
from .session import ClientContext

logger = logging.getLogger(__name__)


@dataclass
class SignInService:
    """Owns the AuthSession of one ClientContext."""

    store: IdentityStore
    context: ClientContext
    timeout_seconds: float = 30.0

    async def sign_in(self, login: str | None, password: str | None) -> UserProfile:
        """
        Authenticate with username or email and sign the context in.

        A live email change belongs to whoever was signed in before, so
        it is discarded.

        Raises:
            ValidationError: Login or password left blank
            AuthError: Credentials rejected
            TransientError: Timeout or network failure
        """
        login = (login or "").strip()
        if not login:
            raise ValidationError(messages.ERROR_LOGIN_REQUIRED, field="login")
        if not password:
            raise ValidationError(messages.ERROR_PASSWORD_REQUIRED, field="password")

        try:
            grant = await asyncio.wait_for(
                self.store.authenticate(login, password), self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning("Sign in timed out")
            raise TransientError(messages.ERROR_TIMEOUT) from None

        self._discard_email_change()
        self.context.auth.sign_in(grant.token, grant.user)
        return grant.user

    def sign_out(self) -> None:
        if self.context.auth.signed_in:
            logger.info("Signed out user %s", self.context.auth.user.id)
        self._discard_email_change()
        self.context.auth.sign_out()

    def _discard_email_change(self) -> None:
        session = self.context.flows.get(FlowKind.EMAIL_CHANGE)
        if session is not None:
            self.context.flows.discard(session)
