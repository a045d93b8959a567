"""
API v1 routes.

Defines the REST endpoints the UI calls once per user action. Each
endpoint resolves the caller's live flow, runs one controller action and
returns the resulting FlowView; flow errors come back as ErrorResponse.
The session routes sign the client in and out, and DELETE /context is
how the UI says it has closed.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.adapters.context.memory import InMemoryClientContexts
from src.adapters.prompt.preset import PresetAnswerPrompt
from src.api.dependencies import (
    NO_ACTIVE_FLOW,
    find_client_context,
    find_sign_in_service,
    get_context_id,
    get_contexts,
    get_email_change_flow,
    get_recovery_flow,
    get_registration_flow,
    open_sign_in_service,
    start_email_change_flow,
    start_recovery_flow,
    start_registration_flow,
)
from src.api.errors import flow_errors
from src.api.models import (
    AccountRequest,
    AccountView,
    CodeRequest,
    EmailRequest,
    ErrorResponse,
    FlowView,
    FullNameRequest,
    OwnershipRequest,
    PasswordRequest,
    ResetPasswordRequest,
    SessionView,
    SignInRequest,
    UsernameRequest,
    UserView,
)
from src.domain.email_change import EmailChangeFlow
from src.domain.flow import FlowController
from src.domain.ports import StepResult
from src.domain.recovery import RecoveryFlow
from src.domain.registration import RegistrationFlow
from src.domain.session import ClientContext, FlowSession
from src.domain.sign_in import SignInService

router = APIRouter(tags=["v1"])

FLOW_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Invalid credentials or code"},
    404: {"model": ErrorResponse, "description": "No active flow"},
    409: {"model": ErrorResponse, "description": "Conflict or wrong stage"},
    410: {"model": ErrorResponse, "description": "Flow cannot continue, sign in instead"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    503: {"model": ErrorResponse, "description": "Identity Store unavailable, retry"},
}


def _live(flow: FlowController) -> FlowSession:
    session = flow.current()
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NO_ACTIVE_FLOW)
    return session


def _view(session: FlowSession, flow: FlowController, result: StepResult | None = None) -> FlowView:
    auth = flow.context.auth
    return FlowView(
        kind=session.kind,
        stage=session.stage,
        email=session.subject_email,
        resend_in=session.cooldown.remaining(),
        candidates=[AccountView.of(a) for a in session.candidate_accounts],
        result=result,
        signed_in=auth.signed_in,
        user=UserView.of(auth.user) if auth.user else None,
    )


# ========== REGISTRATION ==========


@router.post(
    "/registration",
    response_model=FlowView,
    status_code=status.HTTP_201_CREATED,
    summary="Start registration",
    description="Open a registration flow; any live registration of this client is discarded.",
)
async def start_registration(
    flow: RegistrationFlow = Depends(start_registration_flow),
) -> FlowView:
    return _view(flow.start(), flow)


@router.get("/registration", response_model=FlowView, responses=FLOW_RESPONSES)
async def get_registration(flow: RegistrationFlow = Depends(get_registration_flow)) -> FlowView:
    return _view(_live(flow), flow)


@router.delete(
    "/registration", status_code=status.HTTP_204_NO_CONTENT, responses=FLOW_RESPONSES
)
async def cancel_registration(flow: RegistrationFlow = Depends(get_registration_flow)) -> None:
    flow.cancel(_live(flow))


@router.post(
    "/registration/username",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Submit username",
)
async def registration_username(
    body: UsernameRequest, flow: RegistrationFlow = Depends(get_registration_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.submit_username(session, body.username)
    return _view(session, flow, result)


@router.post(
    "/registration/email",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Submit email and create the provisional account",
    description="Creates the account and sends a verification code. "
    "A conflict routes the flow back to the username step.",
)
async def registration_email(
    body: EmailRequest, flow: RegistrationFlow = Depends(get_registration_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.submit_email(session, body.email)
    return _view(session, flow, result)


@router.post(
    "/registration/code",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Confirm the emailed code",
)
async def registration_code(
    body: CodeRequest, flow: RegistrationFlow = Depends(get_registration_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.confirm_code(session, body.code)
    return _view(session, flow, result)


@router.post(
    "/registration/code/resend",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Resend the registration code",
)
async def registration_resend(
    flow: RegistrationFlow = Depends(get_registration_flow),
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.resend_code(session)
    return _view(session, flow, result)


@router.post(
    "/registration/full-name",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Submit or skip the full name",
)
async def registration_full_name(
    body: FullNameRequest, flow: RegistrationFlow = Depends(get_registration_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = flow.submit_full_name(session, body.full_name)
    return _view(session, flow, result)


@router.post(
    "/registration/password",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Set the password and finish registration",
)
async def registration_password(
    body: PasswordRequest, flow: RegistrationFlow = Depends(get_registration_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.set_password(session, body.password, body.confirmation)
    return _view(session, flow, result)


@router.post("/registration/back", response_model=FlowView, responses=FLOW_RESPONSES)
async def registration_back(flow: RegistrationFlow = Depends(get_registration_flow)) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = flow.go_back(session)
    return _view(session, flow, result)


# ========== RECOVERY ==========


@router.post(
    "/recovery",
    response_model=FlowView,
    status_code=status.HTTP_201_CREATED,
    summary="Start password recovery",
)
async def start_recovery(flow: RecoveryFlow = Depends(start_recovery_flow)) -> FlowView:
    return _view(flow.start(), flow)


@router.get("/recovery", response_model=FlowView, responses=FLOW_RESPONSES)
async def get_recovery(flow: RecoveryFlow = Depends(get_recovery_flow)) -> FlowView:
    return _view(_live(flow), flow)


@router.delete("/recovery", status_code=status.HTTP_204_NO_CONTENT, responses=FLOW_RESPONSES)
async def cancel_recovery(flow: RecoveryFlow = Depends(get_recovery_flow)) -> None:
    flow.cancel(_live(flow))


@router.post(
    "/recovery/email",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Submit the account email",
    description="Always advances to the ownership step, whether or not the email is known.",
)
async def recovery_email(
    body: EmailRequest, flow: RecoveryFlow = Depends(get_recovery_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.request_email(session, body.email)
    return _view(session, flow, result)


@router.post(
    "/recovery/ownership",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Prove ownership with the current password",
)
async def recovery_ownership(
    body: OwnershipRequest, flow: RecoveryFlow = Depends(get_recovery_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.verify_ownership(session, body.password)
    return _view(session, flow, result)


@router.post(
    "/recovery/account",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Choose the account to recover",
)
async def recovery_account(
    body: AccountRequest, flow: RecoveryFlow = Depends(get_recovery_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.select_account(session, body.account_id)
    return _view(session, flow, result)


@router.post(
    "/recovery/code",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Verify the reset code",
)
async def recovery_code(
    body: CodeRequest, flow: RecoveryFlow = Depends(get_recovery_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.verify_code(session, body.code)
    return _view(session, flow, result)


@router.post(
    "/recovery/code/resend",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Resend the reset code",
)
async def recovery_resend(flow: RecoveryFlow = Depends(get_recovery_flow)) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.resend_code(session)
    return _view(session, flow, result)


@router.post(
    "/recovery/password",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Set the new password",
    description="Requires confirmed=true. An expired code routes back to the code step.",
)
async def recovery_password(
    body: ResetPasswordRequest, flow: RecoveryFlow = Depends(get_recovery_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.set_new_password(
            session, body.password, body.confirmation, PresetAnswerPrompt(body.confirmed)
        )
    return _view(session, flow, result)


@router.post("/recovery/back", response_model=FlowView, responses=FLOW_RESPONSES)
async def recovery_back(flow: RecoveryFlow = Depends(get_recovery_flow)) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = flow.go_back(session)
    return _view(session, flow, result)


# ========== EMAIL CHANGE ==========


@router.post(
    "/email-change",
    response_model=FlowView,
    status_code=status.HTTP_201_CREATED,
    responses=FLOW_RESPONSES,
    summary="Start an email change",
)
async def start_email_change(
    flow: EmailChangeFlow = Depends(start_email_change_flow),
) -> FlowView:
    with flow_errors(None):
        session = flow.start()
    return _view(session, flow)


@router.get("/email-change", response_model=FlowView, responses=FLOW_RESPONSES)
async def get_email_change(flow: EmailChangeFlow = Depends(get_email_change_flow)) -> FlowView:
    return _view(_live(flow), flow)


@router.delete(
    "/email-change", status_code=status.HTTP_204_NO_CONTENT, responses=FLOW_RESPONSES
)
async def cancel_email_change(flow: EmailChangeFlow = Depends(get_email_change_flow)) -> None:
    flow.cancel(_live(flow))


@router.post(
    "/email-change/email",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Submit the new email",
)
async def email_change_email(
    body: EmailRequest, flow: EmailChangeFlow = Depends(get_email_change_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.request_change(session, body.email)
    return _view(session, flow, result)


@router.post(
    "/email-change/code",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Confirm the new email",
)
async def email_change_code(
    body: CodeRequest, flow: EmailChangeFlow = Depends(get_email_change_flow)
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.confirm_code(session, body.code)
    return _view(session, flow, result)


@router.post(
    "/email-change/code/resend",
    response_model=FlowView,
    responses=FLOW_RESPONSES,
    summary="Resend the email change code",
)
async def email_change_resend(
    flow: EmailChangeFlow = Depends(get_email_change_flow),
) -> FlowView:
    session = _live(flow)
    with flow_errors(session):
        result = await flow.resend_code(session)
    return _view(session, flow, result)


# ========== SESSION ==========


def _session_view(context: ClientContext | None) -> SessionView:
    if context is None or not context.auth.signed_in:
        return SessionView()
    return SessionView(signed_in=True, user=UserView.of(context.auth.user))


@router.post(
    "/session",
    response_model=SessionView,
    responses={k: FLOW_RESPONSES[k] for k in (401, 422, 503)},
    summary="Sign in",
    description="Authenticate with username or email. Where SIGN_IN_REQUIRED sends the user.",
)
async def sign_in(
    body: SignInRequest, service: SignInService = Depends(open_sign_in_service)
) -> SessionView:
    with flow_errors(None):
        await service.sign_in(body.login, body.password)
    return _session_view(service.context)


@router.get("/session", response_model=SessionView, summary="Current sign-in state")
async def get_session(
    context: ClientContext | None = Depends(find_client_context),
) -> SessionView:
    return _session_view(context)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT, summary="Sign out")
async def sign_out(service: SignInService | None = Depends(find_sign_in_service)) -> None:
    if service is not None:
        service.sign_out()


# ========== CLIENT CONTEXT ==========


@router.delete(
    "/context",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close the client context",
    description="Call when the UI closes. Live flows and the sign-in are dropped.",
)
async def close_context(
    context_id: str = Depends(get_context_id),
    contexts: InMemoryClientContexts = Depends(get_contexts),
) -> None:
    contexts.close(context_id)
