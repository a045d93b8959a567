"""
Flow controller base - Shared stage, timeout and resend handling.

Controllers are stateless services bound to one ClientContext; all
per-attempt state lives in the FlowSession passed to each action.
Each action issues its network calls one at a time and bounds each
by the configured timeout.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import ClassVar, TypeVar

from . import messages
from .exceptions import AuthError, FlowError, StageError, TransientError
from .ports import FlowKind, IdentityStore, Stage, StepResult
from .session import ClientContext, FlowSession
from .validators import FlowLimits

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FlowController:
    """Base class for the registration, recovery and email change controllers."""

    store: IdentityStore
    context: ClientContext
    limits: FlowLimits = field(default_factory=FlowLimits)
    timeout_seconds: float = 30.0

    kind: ClassVar[FlowKind]
    entry_stage: ClassVar[Stage]

    def start(self) -> FlowSession:
        """Open the flow; a live flow of the same kind is discarded."""
        session = self.context.flows.start(self.kind, self.entry_stage)
        logger.info("Started %s flow", self.kind.value)
        return session

    def current(self) -> FlowSession | None:
        return self.context.flows.get(self.kind)

    def cancel(self, session: FlowSession) -> None:
        """
        Discard the session locally.

        No abort call is sent: a provisional account or an unconsumed code
        stays on the server.
        """
        self.context.flows.discard(session)
        logger.info("Cancelled %s flow at %s", self.kind.value, session.stage.value)

    def _require(self, session: FlowSession, *stages: Stage) -> None:
        if not self.context.flows.is_live(session):
            raise StageError(messages.ERROR_STALE_SESSION)
        if session.stage not in stages:
            raise StageError(messages.ERROR_WRONG_STAGE)

    def _advance(self, session: FlowSession, stage: Stage) -> StepResult:
        logger.info(
            "%s flow: %s -> %s", self.kind.value, session.stage.value, stage.value
        )
        session.stage = stage
        return StepResult.ADVANCED

    def _finish(self, session: FlowSession) -> None:
        session.stage = Stage.COMPLETE
        self.context.flows.discard(session)
        logger.info("Completed %s flow", self.kind.value)

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """Await one Identity Store call within the timeout budget."""
        try:
            return await asyncio.wait_for(awaitable, self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("%s flow: request timed out", self.kind.value)
            raise TransientError(messages.ERROR_TIMEOUT) from None

    async def _check_code(self, session: FlowSession, awaitable: Awaitable[T]) -> T:
        """
        Await a call that submits a verification code.

        An expired code cannot succeed on retry, so the resend cooldown is
        lifted and the user can ask for a new one straight away.
        """
        try:
            return await self._call(awaitable)
        except AuthError as exc:
            if exc.expired:
                session.cooldown.disarm()
                logger.info("%s flow: code expired, resend allowed", self.kind.value)
            raise

    async def _resend(
        self, session: FlowSession, send: Callable[[], Awaitable[None]]
    ) -> StepResult:
        """
        Request a fresh code unless the cooldown is still running.

        The cooldown is armed before the call so a second click while the
        first request is in flight stays local; a failed request restores
        the previous deadline.
        """
        if not session.cooldown.ready:
            return StepResult.IGNORED
        previous = session.cooldown.deadline
        session.cooldown.arm()
        try:
            await self._call(send())
        except FlowError:
            session.cooldown.deadline = previous
            raise
        logger.info("%s flow: code resent", self.kind.value)
        return StepResult.RESENT
