"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field rules (lengths, formats) are enforced by the flow controllers so that
failures come back as field-level flow errors, not generic 422 bodies.
"""

from pydantic import BaseModel, Field

from src.domain.ports import AccountSummary, FlowKind, Stage, StepResult, UserProfile


class UsernameRequest(BaseModel):
    username: str = Field(..., max_length=200)


class EmailRequest(BaseModel):
    email: str = Field(..., max_length=320)


class CodeRequest(BaseModel):
    code: str = Field(..., max_length=20, description="Verification code from the email")


class FullNameRequest(BaseModel):
    """Omit full_name or send null/blank to skip the step."""

    full_name: str | None = Field(None, max_length=500)


class PasswordRequest(BaseModel):
    password: str = Field(..., max_length=500)
    confirmation: str = Field(..., max_length=500)


class ResetPasswordRequest(PasswordRequest):
    confirmed: bool = Field(
        False, description="Answer to the 'change password?' prompt; false cancels"
    )


class OwnershipRequest(BaseModel):
    password: str = Field(..., max_length=500, description="Current password of the account")


class AccountRequest(BaseModel):
    account_id: str = Field(..., max_length=100)


class AccountView(BaseModel):
    id: str
    username: str | None
    email: str

    @classmethod
    def of(cls, account: AccountSummary) -> "AccountView":
        return cls(id=account.id, username=account.username, email=account.email)


class UserView(BaseModel):
    id: str
    username: str
    email: str
    full_name: str | None
    is_admin: bool

    @classmethod
    def of(cls, user: UserProfile) -> "UserView":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            full_name=user.full_name,
            is_admin=user.is_admin,
        )


class FlowView(BaseModel):
    """State of one flow as the UI renders it."""

    kind: FlowKind
    stage: Stage
    email: str | None = None
    resend_in: int = Field(0, description="Seconds until a new code may be requested")
    candidates: list[AccountView] = []
    result: StepResult | None = None
    signed_in: bool = False
    user: UserView | None = None


class SignInRequest(BaseModel):
    login: str = Field(..., max_length=320, description="Username or email")
    password: str = Field(..., max_length=500)


class SessionView(BaseModel):
    signed_in: bool = False
    user: UserView | None = None


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
    field: str | None = None
    stage: Stage | None = None
