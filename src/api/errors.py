"""
Flow error responses.

Maps the domain error taxonomy onto HTTP statuses and renders the
ErrorResponse body, including the stage the flow is in after the error
(a conflict, for example, moves the flow back to the username step).
"""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.models import ErrorResponse
from src.domain.exceptions import (
    AuthError,
    ConflictError,
    FatalFlowError,
    FlowError,
    StageError,
    TransientError,
    ValidationError,
)
from src.domain.session import FlowSession

STATUS_BY_ERROR: dict[type[FlowError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthError: status.HTTP_401_UNAUTHORIZED,
    TransientError: status.HTTP_503_SERVICE_UNAVAILABLE,
    FatalFlowError: status.HTTP_410_GONE,
    StageError: status.HTTP_409_CONFLICT,
}


class FlowErrorResponse(Exception):
    """A FlowError raised while handling a request, with the resulting stage."""

    def __init__(self, error: FlowError, session: FlowSession | None) -> None:
        super().__init__(error.message)
        self.error = error
        self.stage = session.stage if session is not None else None


@contextmanager
def flow_errors(session: FlowSession | None) -> Iterator[None]:
    """Re-raise FlowErrors from a flow action as FlowErrorResponse."""
    try:
        yield
    except FlowError as exc:
        raise FlowErrorResponse(exc, session) from exc


def status_for(error: FlowError) -> int:
    for error_type in type(error).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


async def flow_error_handler(request: Request, exc: FlowErrorResponse) -> JSONResponse:
    body = ErrorResponse(detail=exc.error.message, field=exc.error.field, stage=exc.stage)
    return JSONResponse(status_code=status_for(exc.error), content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FlowErrorResponse, flow_error_handler)
