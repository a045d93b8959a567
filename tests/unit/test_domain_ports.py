"""
Unit tests for domain ports and exceptions.

Tests verify:
- Enums and records are properly defined
- Exceptions are properly structured
- Adapters satisfy the ports structurally
- Domain purity (zero framework imports)
"""

import inspect
import subprocess
from enum import Enum

import pytest

from src.adapters.identity.http import HttpIdentityStore
from src.adapters.prompt.preset import PresetAnswerPrompt
from src.domain.exceptions import (
    AuthError,
    ConflictError,
    FatalFlowError,
    FlowError,
    StageError,
    TransientError,
    ValidationError,
)
from src.domain.ports import (
    ConfirmationPrompt,
    IdentityStore,
    Stage,
    StepResult,
    UserProfile,
)


class TestEnums:
    """Tests for Stage and StepResult."""

    def test_stage_is_str_enum(self) -> None:
        """Stage values serialize as lowercase strings."""
        assert issubclass(Stage, Enum)
        assert Stage.AWAIT_CODE_CONFIRMATION == "await_code_confirmation"

    def test_step_results(self) -> None:
        """StepResult has every non-error outcome."""
        assert {r.value for r in StepResult} == {
            "advanced",
            "resent",
            "ignored",
            "completed",
            "sign_in_required",
        }


class TestRecords:
    """Tests for port records."""

    def test_user_profile_is_frozen(self) -> None:
        """Records are immutable."""
        user = UserProfile(id="1", username="a", email="a@x.io")
        with pytest.raises(AttributeError):
            user.email = "b@x.io"


class TestExceptions:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        "error_type",
        [ValidationError, ConflictError, AuthError, TransientError, FatalFlowError, StageError],
    )
    def test_all_inherit_from_flow_error(self, error_type: type) -> None:
        """Every error kind is a FlowError."""
        assert issubclass(error_type, FlowError)

    def test_message_and_field(self) -> None:
        """Errors carry a message and an optional field."""
        error = ValidationError("Enter a username.", field="username")
        assert str(error) == "Enter a username."
        assert error.message == "Enter a username."
        assert error.field == "username"

    def test_auth_error_expired_flag(self) -> None:
        """AuthError can mark a code as expired."""
        assert AuthError("x", expired=True).expired
        assert not AuthError("x").expired


class TestAdaptersMatchPorts:
    """Adapters implement the ports without inheriting from them."""

    def test_http_store_has_every_port_method(self) -> None:
        """HttpIdentityStore provides each IdentityStore coroutine."""
        for name, member in inspect.getmembers(IdentityStore, inspect.iscoroutinefunction):
            if name.startswith("_"):
                continue
            assert inspect.iscoroutinefunction(getattr(HttpIdentityStore, name)), name
        assert IdentityStore not in HttpIdentityStore.__mro__

    def test_preset_prompt_has_confirm(self) -> None:
        """PresetAnswerPrompt provides the prompt coroutine."""
        assert inspect.iscoroutinefunction(PresetAnswerPrompt.confirm)
        assert ConfirmationPrompt not in PresetAnswerPrompt.__mro__


class TestDomainPurity:
    """The domain layer imports no framework or transport library."""

    @pytest.mark.parametrize(
        "pattern",
        ["import fastapi", "from fastapi", "import pydantic", "from pydantic", "import httpx"],
    )
    def test_no_framework_imports(self, pattern: str) -> None:
        """grep finds no framework imports under src/domain."""
        result = subprocess.run(
            ["grep", "-r", pattern, "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.stdout == "", f"Found '{pattern}' in domain layer: {result.stdout}"
