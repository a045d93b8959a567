"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory Identity Store fake with call counters
- A manually advanced clock for cooldown timing
- Client contexts and flow controllers wired to both
"""

import asyncio
from collections import Counter
from dataclasses import dataclass

import pytest

from src.domain import messages
from src.domain.email_change import EmailChangeFlow
from src.domain.exceptions import AuthError, ConflictError, FlowError
from src.domain.ports import (
    AccountSummary,
    AuthGrant,
    CodeConfirmation,
    ProvisionedAccount,
    UsernameAvailability,
    UserProfile,
)
from src.domain.recovery import RecoveryFlow
from src.domain.registration import RegistrationFlow
from src.domain.session import ClientContext, FlowRegistry

CODE = "123456"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeAccount:
    id: str
    username: str
    email: str
    password: str
    full_name: str | None = None
    verified: bool = False

    def profile(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            username=self.username,
            email=self.email,
            full_name=self.full_name,
            email_verified=self.verified,
        )


class FakeIdentityStore:
    """
    In-memory IdentityStore.

    Codes are single use where the real store consumes them (registration
    confirm, reset, email change confirm). Set `gate` to an asyncio.Event
    to hold every call in flight until it is set; put an exception in
    `failures[method]` to make the next call of that method raise it.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, FakeAccount] = {}
        self.codes: dict[tuple[str, ...], str] = {}
        self.tokens: dict[str, str] = {}
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, FlowError] = {}
        self.gate: asyncio.Event | None = None
        self.code = CODE
        self.confirm_returns_token = True
        self.reset_returns_session = True

    def add_account(self, username: str, email: str, password: str) -> FakeAccount:
        account = FakeAccount(
            id=f"u{len(self.accounts) + 1}",
            username=username,
            email=email,
            password=password,
            verified=True,
        )
        self.accounts[account.id] = account
        return account

    def by_username(self, username: str) -> FakeAccount | None:
        return next((a for a in self.accounts.values() if a.username == username), None)

    async def _enter(self, method: str) -> None:
        self.calls[method] += 1
        if self.gate is not None:
            await self.gate.wait()
        if method in self.failures:
            raise self.failures.pop(method)

    def _issue_token(self, account: FakeAccount) -> str:
        token = f"token-{account.id}-{len(self.tokens)}"
        self.tokens[token] = account.id
        return token

    def _account_for(self, token: str) -> FakeAccount:
        account_id = self.tokens.get(token)
        if account_id is None:
            raise AuthError(messages.ERROR_INVALID_CREDENTIALS)
        return self.accounts[account_id]

    def _consume(self, key: tuple[str, ...], code: str) -> None:
        if self.codes.get(key) != code:
            raise AuthError(messages.ERROR_INVALID_CODE, field="code")
        del self.codes[key]

    async def check_username(self, username: str) -> UsernameAvailability:
        await self._enter("check_username")
        if self.by_username(username) is not None:
            return UsernameAvailability(available=False, reason=messages.ERROR_USERNAME_TAKEN)
        return UsernameAvailability(available=True)

    async def create_account(self, username: str, email: str, password: str) -> ProvisionedAccount:
        await self._enter("create_account")
        if self.by_username(username) is not None:
            raise ConflictError(messages.ERROR_ACCOUNT_EXISTS)
        account = FakeAccount(
            id=f"u{len(self.accounts) + 1}", username=username, email=email, password=password
        )
        self.accounts[account.id] = account
        self.codes[("registration", email)] = self.code
        return ProvisionedAccount(
            needs_confirmation=True,
            email=email,
            token=self._issue_token(account),
            user=account.profile(),
        )

    async def confirm_email(self, email: str, code: str) -> CodeConfirmation:
        await self._enter("confirm_email")
        self._consume(("registration", email), code)
        account = next(a for a in self.accounts.values() if a.email == email and not a.verified)
        account.verified = True
        if not self.confirm_returns_token:
            return CodeConfirmation()
        return CodeConfirmation(token=self._issue_token(account), user=account.profile())

    async def resend_code(self, email: str) -> None:
        await self._enter("resend_code")
        self.codes[("registration", email)] = self.code

    async def find_accounts(self, email: str) -> list[AccountSummary]:
        await self._enter("find_accounts")
        return [
            AccountSummary(id=a.id, username=a.username, email=a.email)
            for a in self.accounts.values()
            if a.email == email
        ]

    async def authenticate(self, login: str, password: str) -> AuthGrant:
        await self._enter("authenticate")
        for account in self.accounts.values():
            if login in (account.username, account.email) and account.password == password:
                return AuthGrant(token=self._issue_token(account), user=account.profile())
        raise AuthError(messages.ERROR_INVALID_CREDENTIALS, field="password")

    async def request_reset_code(self, email: str, account_id: str) -> None:
        await self._enter("request_reset_code")
        self.codes[("reset", account_id)] = self.code

    async def verify_reset_code(self, email: str, account_id: str, code: str) -> None:
        await self._enter("verify_reset_code")
        if self.codes.get(("reset", account_id)) != code:
            raise AuthError(messages.ERROR_INVALID_CODE, field="code")

    async def finalize_registration(
        self, token: str, password: str, full_name: str | None
    ) -> UserProfile:
        await self._enter("finalize_registration")
        account = self._account_for(token)
        account.password = password
        account.full_name = full_name
        return account.profile()

    async def reset_password(
        self, email: str, account_id: str, code: str, password: str
    ) -> AuthGrant | None:
        await self._enter("reset_password")
        self._consume(("reset", account_id), code)
        account = self.accounts[account_id]
        account.password = password
        if not self.reset_returns_session:
            return None
        return AuthGrant(token=self._issue_token(account), user=account.profile())

    async def request_email_change(self, token: str, email: str) -> None:
        await self._enter("request_email_change")
        account = self._account_for(token)
        self.codes[("email", account.id, email)] = self.code

    async def confirm_email_change(self, token: str, email: str, code: str) -> UserProfile:
        await self._enter("confirm_email_change")
        account = self._account_for(token)
        self._consume(("email", account.id, email), code)
        account.email = email
        return account.profile()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeIdentityStore:
    return FakeIdentityStore()


@pytest.fixture
def context(clock: FakeClock) -> ClientContext:
    return ClientContext(flows=FlowRegistry(clock=clock, cooldown_seconds=60))


@pytest.fixture
def registration(store: FakeIdentityStore, context: ClientContext) -> RegistrationFlow:
    return RegistrationFlow(store=store, context=context, timeout_seconds=1.0)


@pytest.fixture
def recovery(store: FakeIdentityStore, context: ClientContext) -> RecoveryFlow:
    return RecoveryFlow(store=store, context=context, timeout_seconds=1.0)


@pytest.fixture
def email_change(store: FakeIdentityStore, context: ClientContext) -> EmailChangeFlow:
    return EmailChangeFlow(store=store, context=context, timeout_seconds=1.0)
