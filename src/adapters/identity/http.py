"""
HTTP Identity Store adapter - Implements IdentityStore protocol.

This module provides the httpx implementation of the domain's Identity
Store port. Every response is mapped onto the domain error taxonomy so
the flow controllers never see transport details.

Status mapping:
- 409, or 400 naming a duplicate/taken/existing value -> ConflictError
- 400 -> ValidationError (AuthError on code and password endpoints)
- 401, 403, 404 -> AuthError
- 410 -> AuthError(expired=True)
- 429, 5xx, timeouts, network failures, malformed bodies -> TransientError
"""

import logging
import re
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PayloadError

from src.domain import messages
from src.domain.exceptions import (
    AuthError,
    ConflictError,
    FlowError,
    TransientError,
    ValidationError,
)
from src.domain.ports import (
    AccountSummary,
    AuthGrant,
    CodeConfirmation,
    ProvisionedAccount,
    UsernameAvailability,
    UserProfile,
)

from .models import (
    AuthPayload,
    AvailabilityPayload,
    ErrorPayload,
    ProfilePayload,
    RecoveryLookupPayload,
    RegisterPayload,
    SessionPayload,
    SuccessPayload,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_CONFLICT_RE = re.compile(r"exist|taken|duplicate|unique", re.IGNORECASE)


class HttpIdentityStore:
    """
    Implements IdentityStore protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The AsyncClient (base URL, timeout) is owned by the caller.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def check_username(self, username: str) -> UsernameAvailability:
        payload = await self._request(
            "GET", f"/check-username/{quote(username, safe='')}", model=AvailabilityPayload
        )
        return UsernameAvailability(available=payload.available, reason=payload.detail)

    async def create_account(self, username: str, email: str, password: str) -> ProvisionedAccount:
        payload = await self._request(
            "POST",
            "/register",
            json={"username": username, "email": email, "password": password, "fullName": None},
            model=RegisterPayload,
            conflict_field="username",
        )
        return ProvisionedAccount(
            needs_confirmation=payload.needs_code_confirmation,
            email=payload.email or email,
            token=payload.token,
            user=payload.user.to_domain() if payload.user else None,
        )

    async def confirm_email(self, email: str, code: str) -> CodeConfirmation:
        payload = await self._request(
            "POST",
            "/confirm-email",
            json={"email": email, "code": code},
            model=SessionPayload,
            field="code",
            bad_request=AuthError,
        )
        if payload.token and payload.user:
            return CodeConfirmation(token=payload.token, user=payload.user.to_domain())
        if payload.success:
            return CodeConfirmation()
        raise AuthError(payload.detail or messages.ERROR_INVALID_CODE, field="code")

    async def resend_code(self, email: str) -> None:
        payload = await self._request(
            "POST",
            "/resend-code",
            json={"email": email, "purpose": "registration"},
            model=SuccessPayload,
        )
        self._ensure_success(payload)

    async def find_accounts(self, email: str) -> list[AccountSummary]:
        try:
            payload = await self._request(
                "POST", "/forgot-password", json={"email": email}, model=RecoveryLookupPayload
            )
        except AuthError:
            # An unknown email is reported as zero matches, not as an error.
            return []
        if payload.accounts:
            return [account.to_domain(email) for account in payload.accounts]
        if payload.user_id:
            return [AccountSummary(id=payload.user_id, username=None, email=email)]
        return []

    async def authenticate(self, login: str, password: str) -> AuthGrant:
        payload = await self._request(
            "POST",
            "/login",
            json={"username": login, "password": password},
            model=AuthPayload,
            field="password",
            bad_request=AuthError,
        )
        return AuthGrant(token=payload.token, user=payload.user.to_domain())

    async def request_reset_code(self, email: str, account_id: str) -> None:
        payload = await self._request(
            "POST",
            "/forgot-password",
            json={"email": email, "userId": account_id},
            model=SuccessPayload,
        )
        self._ensure_success(payload)

    async def verify_reset_code(self, email: str, account_id: str, code: str) -> None:
        payload = await self._request(
            "POST",
            "/verify-reset-code",
            json={"email": email, "userId": account_id, "code": code},
            model=SuccessPayload,
            field="code",
            bad_request=AuthError,
        )
        if not payload.success:
            raise AuthError(payload.detail or messages.ERROR_INVALID_CODE, field="code")

    async def finalize_registration(
        self, token: str, password: str, full_name: str | None
    ) -> UserProfile:
        payload = await self._request(
            "PUT",
            "/profile",
            json={"password": password, "fullName": full_name},
            model=ProfilePayload,
            token=token,
            field="password",
        )
        return payload.user.to_domain()

    async def reset_password(
        self, email: str, account_id: str, code: str, password: str
    ) -> AuthGrant | None:
        payload = await self._request(
            "POST",
            "/reset-password",
            json={"email": email, "userId": account_id, "code": code, "password": password},
            model=SessionPayload,
            field="code",
            bad_request=AuthError,
        )
        if not payload.success:
            raise AuthError(payload.detail or messages.ERROR_INVALID_CODE, field="code")
        if payload.token and payload.user:
            return AuthGrant(token=payload.token, user=payload.user.to_domain())
        return None

    async def request_email_change(self, token: str, email: str) -> None:
        payload = await self._request(
            "POST",
            "/profile/change-email",
            json={"email": email},
            model=SuccessPayload,
            token=token,
            field="email",
            conflict_field="email",
        )
        self._ensure_success(payload)

    async def confirm_email_change(self, token: str, email: str, code: str) -> UserProfile:
        payload = await self._request(
            "POST",
            "/profile/confirm-email-change",
            json={"email": email, "code": code},
            model=SessionPayload,
            token=token,
            field="code",
            bad_request=AuthError,
        )
        if not (payload.success and payload.user):
            raise AuthError(payload.detail or messages.ERROR_INVALID_CODE, field="code")
        return payload.user.to_domain()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        model: type[M],
        json: dict[str, Any] | None = None,
        token: str | None = None,
        field: str | None = None,
        bad_request: type[FlowError] = ValidationError,
        conflict_field: str | None = None,
    ) -> M:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Identity Store timeout: %s %s", method, path)
            raise TransientError(messages.ERROR_TIMEOUT) from exc
        except httpx.RequestError as exc:
            logger.warning("Identity Store unreachable: %s %s (%s)", method, path, exc)
            raise TransientError(messages.ERROR_NETWORK) from exc

        if response.is_error:
            raise self._error_for(response, field, bad_request, conflict_field)

        try:
            return model.model_validate(response.json())
        except (ValueError, PayloadError) as exc:
            logger.warning("Malformed Identity Store response: %s %s", method, path)
            raise TransientError(messages.ERROR_BAD_RESPONSE) from exc

    def _error_for(
        self,
        response: httpx.Response,
        field: str | None,
        bad_request: type[FlowError],
        conflict_field: str | None,
    ) -> FlowError:
        status = response.status_code
        detail = self._error_detail(response)
        logger.warning("Identity Store returned %s for %s", status, response.request.url.path)

        if conflict_field is not None and (
            status == 409 or (status == 400 and detail and _CONFLICT_RE.search(detail))
        ):
            return ConflictError(detail or messages.ERROR_ACCOUNT_EXISTS, field=conflict_field)
        if status == 400:
            return bad_request(detail or messages.ERROR_BAD_REQUEST, field=field)
        if status == 410:
            return AuthError(detail or messages.ERROR_CODE_EXPIRED, field=field, expired=True)
        if status in (401, 403, 404):
            return AuthError(detail or messages.ERROR_INVALID_CREDENTIALS, field=field)
        if status == 409:
            return ConflictError(detail or messages.ERROR_ACCOUNT_EXISTS, field=field)
        if status == 429:
            return TransientError(messages.ERROR_TOO_MANY_REQUESTS)
        return TransientError(detail or messages.ERROR_SERVER)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str | None:
        try:
            return ErrorPayload.model_validate(response.json()).detail
        except (ValueError, PayloadError):
            # Not JSON, or not UTF-8 (proxy error pages).
            return None

    @staticmethod
    def _ensure_success(payload: SuccessPayload) -> None:
        if not payload.success:
            raise TransientError(payload.detail or messages.ERROR_SERVER)
