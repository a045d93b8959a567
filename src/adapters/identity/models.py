"""
Identity Store wire models.

Pydantic models for the JSON bodies the Identity Store returns. Field
names on the wire are camelCase; some deployments send snake_case user
fields, so both are accepted. Unknown fields are ignored.
"""

from typing import Annotated

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field

from src.domain.ports import AccountSummary, UserProfile


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _stringify_id(value: object) -> object:
    # Ids arrive as numbers or UUID strings depending on the store.
    return str(value) if value is not None else value


WireId = Annotated[str, BeforeValidator(_stringify_id)]


class UserPayload(WireModel):
    id: WireId
    username: str
    email: str
    full_name: str | None = Field(None, validation_alias=AliasChoices("fullName", "full_name"))
    is_admin: bool = Field(False, validation_alias=AliasChoices("isAdmin", "is_admin"))
    email_verified: bool = Field(
        True, validation_alias=AliasChoices("emailVerified", "email_verified")
    )

    def to_domain(self) -> UserProfile:
        return UserProfile(
            id=self.id,
            username=self.username,
            email=self.email,
            full_name=self.full_name,
            is_admin=self.is_admin,
            email_verified=self.email_verified,
        )


class AccountPayload(WireModel):
    id: WireId
    username: str | None = None
    email: str | None = None

    def to_domain(self, email: str) -> AccountSummary:
        return AccountSummary(id=self.id, username=self.username, email=self.email or email)


class ErrorPayload(WireModel):
    error: str | None = None
    message: str | None = None

    @property
    def detail(self) -> str | None:
        return self.error or self.message


class AvailabilityPayload(ErrorPayload):
    available: bool = False


class SuccessPayload(ErrorPayload):
    success: bool = False


class RegisterPayload(ErrorPayload):
    needs_code_confirmation: bool = Field(False, alias="needsCodeConfirmation")
    email: str | None = None
    token: str | None = None
    user: UserPayload | None = None


class SessionPayload(SuccessPayload):
    """Shape shared by code confirmations and resets: success flag, optional session."""

    token: str | None = None
    user: UserPayload | None = None


class AuthPayload(WireModel):
    token: str
    user: UserPayload


class ProfilePayload(WireModel):
    user: UserPayload


class RecoveryLookupPayload(WireModel):
    accounts: list[AccountPayload] | None = None
    user_id: WireId | None = Field(None, alias="userId")
