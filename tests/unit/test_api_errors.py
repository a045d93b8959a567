"""
Unit tests for API error mapping and response models.
"""

from fastapi import status

from src.adapters.context.memory import InMemoryClientContexts
from src.adapters.identity.models import RegisterPayload, UserPayload
from src.api.errors import FlowErrorResponse, flow_errors, status_for
from src.api.models import ErrorResponse, FlowView
from src.domain.exceptions import (
    AuthError,
    ConflictError,
    FatalFlowError,
    FlowError,
    StageError,
    TransientError,
    ValidationError,
)
from src.domain.ports import FlowKind, Stage, UserProfile
from src.domain.session import FlowRegistry


class TestStatusMapping:
    """Tests for status_for."""

    def test_each_error_kind(self) -> None:
        """Every taxonomy member has its own status."""
        assert status_for(ValidationError("x")) == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert status_for(ConflictError("x")) == status.HTTP_409_CONFLICT
        assert status_for(AuthError("x")) == status.HTTP_401_UNAUTHORIZED
        assert status_for(TransientError("x")) == status.HTTP_503_SERVICE_UNAVAILABLE
        assert status_for(FatalFlowError("x")) == status.HTTP_410_GONE
        assert status_for(StageError("x")) == status.HTTP_409_CONFLICT

    def test_base_error_is_400(self) -> None:
        """An unclassified FlowError is a plain bad request."""
        assert status_for(FlowError("x")) == status.HTTP_400_BAD_REQUEST

    def test_subclass_inherits_status(self) -> None:
        """Subclasses map like their parent."""

        class CodeExpired(AuthError):
            pass

        assert status_for(CodeExpired("x")) == status.HTTP_401_UNAUTHORIZED


class TestFlowErrors:
    """Tests for the flow_errors context manager."""

    def test_wraps_flow_error_with_stage(self) -> None:
        """The stage after the error is captured."""
        session = FlowRegistry().start(FlowKind.REGISTRATION, Stage.COLLECT_EMAIL)
        try:
            with flow_errors(session):
                session.stage = Stage.COLLECT_USERNAME
                raise ConflictError("taken", field="username")
        except FlowErrorResponse as exc:
            assert exc.stage is Stage.COLLECT_USERNAME
            assert exc.error.field == "username"
        else:
            raise AssertionError("FlowErrorResponse not raised")

    def test_other_exceptions_pass_through(self) -> None:
        """Non-flow errors are not converted."""
        try:
            with flow_errors(None):
                raise KeyError("boom")
        except KeyError:
            pass


class TestModels:
    """Tests for API and wire models."""

    def test_flow_view_defaults(self) -> None:
        """A bare view has no candidates and no result."""
        view = FlowView(kind=FlowKind.RECOVERY, stage=Stage.REQUEST_EMAIL)
        assert view.model_dump(mode="json") == {
            "kind": "recovery",
            "stage": "request_email",
            "email": None,
            "resend_in": 0,
            "candidates": [],
            "result": None,
            "signed_in": False,
            "user": None,
        }

    def test_error_response_shape(self) -> None:
        """Error bodies carry detail, field and stage."""
        body = ErrorResponse(detail="bad", field="code", stage=Stage.SEND_AND_VERIFY_CODE)
        assert body.model_dump(mode="json") == {
            "detail": "bad",
            "field": "code",
            "stage": "send_and_verify_code",
        }

    def test_register_payload_accepts_snake_case(self) -> None:
        """The confirmation flag is read by alias or field name."""
        assert RegisterPayload.model_validate({"needsCodeConfirmation": True}).needs_code_confirmation
        assert RegisterPayload.model_validate({"needs_code_confirmation": True}).needs_code_confirmation

    def test_user_payload_ignores_unknown_fields(self) -> None:
        """Extra fields on the wire are dropped."""
        user = UserPayload.model_validate(
            {"id": 3, "username": "a", "email": "a@x.io", "createdAt": "2024-01-01"}
        ).to_domain()
        assert user.id == "3"
        assert user.email_verified


class TestInMemoryClientContexts:
    """Tests for the per-client context store."""

    def test_open_creates_once(self) -> None:
        """Repeated opens return the same context."""
        contexts = InMemoryClientContexts()
        assert contexts.open("a") is contexts.open("a")
        assert contexts.open("a") is not contexts.open("b")
        assert len(contexts) == 2

    def test_get_never_creates(self) -> None:
        """Looking up an unknown id returns None and stores nothing."""
        contexts = InMemoryClientContexts()
        for n in range(50):
            assert contexts.get(f"tab-{n}") is None
        assert len(contexts) == 0

    def test_get_returns_opened_context(self) -> None:
        """An opened context is found by later lookups."""
        contexts = InMemoryClientContexts()
        opened = contexts.open("a")
        assert contexts.get("a") is opened

    def test_close_forgets_context(self) -> None:
        """A closed context starts over empty."""
        contexts = InMemoryClientContexts()
        first = contexts.open("a")
        first.flows.start(FlowKind.REGISTRATION, Stage.COLLECT_USERNAME)

        assert contexts.close("a") is True
        assert contexts.get("a") is None
        assert contexts.open("a").flows.get(FlowKind.REGISTRATION) is None

    def test_close_unknown_is_noop(self) -> None:
        """Closing an id that was never opened reports False."""
        assert InMemoryClientContexts().close("nope") is False

    def test_close_signs_out(self) -> None:
        """A closed context no longer holds the user's token."""
        contexts = InMemoryClientContexts()
        context = contexts.open("a")
        context.auth.sign_in("t", UserProfile(id="1", username="a", email="a@x.io"))

        contexts.close("a")
        assert not context.auth.signed_in

    def test_idle_context_is_dropped(self, clock) -> None:
        """A context unused for longer than idle_seconds is gone."""
        contexts = InMemoryClientContexts(clock=clock, idle_seconds=600)
        contexts.open("a")

        clock.advance(599)
        assert contexts.get("a") is not None

        clock.advance(600)
        assert contexts.get("a") is None
        assert len(contexts) == 0

    def test_access_keeps_context_alive(self, clock) -> None:
        """Each lookup resets the idle window."""
        contexts = InMemoryClientContexts(clock=clock, idle_seconds=600)
        contexts.open("a")
        for _ in range(5):
            clock.advance(500)
            assert contexts.get("a") is not None

    def test_capacity_drops_least_recently_used(self) -> None:
        """Opening past max_contexts evicts the stalest context."""
        contexts = InMemoryClientContexts(max_contexts=2)
        contexts.open("a")
        contexts.open("b")
        contexts.get("a")

        contexts.open("c")

        assert len(contexts) == 2
        assert "a" in contexts
        assert "b" not in contexts
        assert "c" in contexts
