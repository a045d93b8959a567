"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the flow
controllers, the Identity Store adapter and the caller's client context
into routes.

Only the registration and recovery start routes and sign-in create a
client context; every other route works on an existing one.
"""

from fastapi import Depends, Header, HTTPException, Request, status

from src.adapters.context.memory import InMemoryClientContexts
from src.adapters.identity.http import HttpIdentityStore
from src.api.errors import FlowErrorResponse
from src.config.settings import get_settings
from src.domain import messages
from src.domain.email_change import EmailChangeFlow
from src.domain.exceptions import StageError
from src.domain.ports import IdentityStore
from src.domain.recovery import RecoveryFlow
from src.domain.registration import RegistrationFlow
from src.domain.session import ClientContext
from src.domain.sign_in import SignInService
from src.domain.validators import FlowLimits

NO_ACTIVE_FLOW = "No active flow"


def get_contexts(request: Request) -> InMemoryClientContexts:
    """
    Get the client context store from app state.

    The store is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.contexts


def get_identity_store(request: Request) -> IdentityStore:
    """Create the Identity Store adapter over the shared AsyncClient."""
    return HttpIdentityStore(request.app.state.http_client)


def get_context_id(
    x_client_context: str = Header(..., min_length=1, max_length=128),
) -> str:
    return x_client_context


def find_client_context(
    context_id: str = Depends(get_context_id),
    contexts: InMemoryClientContexts = Depends(get_contexts),
) -> ClientContext | None:
    """The caller's context if it exists; never creates one."""
    return contexts.get(context_id)


def get_client_context(
    context: ClientContext | None = Depends(find_client_context),
) -> ClientContext:
    """The caller's existing context, or 404."""
    if context is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_ACTIVE_FLOW)
    return context


def open_client_context(
    context_id: str = Depends(get_context_id),
    contexts: InMemoryClientContexts = Depends(get_contexts),
) -> ClientContext:
    """The caller's context, created on first use."""
    return contexts.open(context_id)


def get_limits() -> FlowLimits:
    settings = get_settings()
    return FlowLimits(
        username_min_length=settings.username_min_length,
        username_max_length=settings.username_max_length,
        password_min_length=settings.password_min_length,
        password_max_length=settings.password_max_length,
        full_name_max_length=settings.full_name_max_length,
        code_length=settings.code_length,
    )


def _timeout() -> float:
    return get_settings().request_timeout_seconds


def get_registration_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(get_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> RegistrationFlow:
    return RegistrationFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def start_registration_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(open_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> RegistrationFlow:
    return RegistrationFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def get_recovery_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(get_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> RecoveryFlow:
    return RecoveryFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def start_recovery_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(open_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> RecoveryFlow:
    return RecoveryFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def get_email_change_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(get_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> EmailChangeFlow:
    return EmailChangeFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def start_email_change_flow(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext | None = Depends(find_client_context),
    limits: FlowLimits = Depends(get_limits),
) -> EmailChangeFlow:
    """Email change needs a signed-in context, and only sign-in creates one."""
    if context is None:
        raise FlowErrorResponse(StageError(messages.ERROR_NOT_SIGNED_IN), None)
    return EmailChangeFlow(store=store, context=context, limits=limits, timeout_seconds=_timeout())


def open_sign_in_service(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext = Depends(open_client_context),
) -> SignInService:
    return SignInService(store=store, context=context, timeout_seconds=_timeout())


def find_sign_in_service(
    store: IdentityStore = Depends(get_identity_store),
    context: ClientContext | None = Depends(find_client_context),
) -> SignInService | None:
    if context is None:
        return None
    return SignInService(store=store, context=context, timeout_seconds=_timeout())
