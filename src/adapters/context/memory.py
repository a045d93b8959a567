"""
In-memory client context store.

Keeps one ClientContext (flow registry + signed-in state) per client
context id. Nothing is persisted: a restart behaves like a full page
reload and every flow starts over.

Contexts are only created by `open()`. Contexts idle for longer than
`idle_seconds` are dropped, and once `max_contexts` is reached the least
recently used one is dropped to make room.
"""

import logging
import time
from collections import OrderedDict

from src.domain.ports import Clock
from src.domain.session import ClientContext, FlowRegistry

logger = logging.getLogger(__name__)


class InMemoryClientContexts:
    """
    Maps client context ids to ClientContext instances, least recently used first.

    The API runs on a single event loop, so plain dict access needs no lock.
    """

    def __init__(
        self,
        cooldown_seconds: int = 60,
        clock: Clock = time.monotonic,
        idle_seconds: float = 1800.0,
        max_contexts: int = 10_000,
    ) -> None:
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._idle_seconds = idle_seconds
        self._max_contexts = max_contexts
        self._contexts: OrderedDict[str, ClientContext] = OrderedDict()
        self._last_seen: dict[str, float] = {}

    def open(self, context_id: str) -> ClientContext:
        """Return the context for this id, creating an empty one if needed."""
        context = self.get(context_id)
        if context is not None:
            return context

        while len(self._contexts) >= self._max_contexts:
            oldest = next(iter(self._contexts))
            self._drop(oldest)
            logger.info("Client context limit reached, dropped least recently used")

        context = ClientContext(
            flows=FlowRegistry(clock=self._clock, cooldown_seconds=self._cooldown_seconds)
        )
        self._contexts[context_id] = context
        self._last_seen[context_id] = self._clock()
        logger.info("Created client context")
        return context

    def get(self, context_id: str) -> ClientContext | None:
        """Return the context for this id, or None if unknown or expired."""
        self._evict_idle()
        context = self._contexts.get(context_id)
        if context is not None:
            self._contexts.move_to_end(context_id)
            self._last_seen[context_id] = self._clock()
        return context

    def close(self, context_id: str) -> bool:
        """Drop a context (UI closed); its live flows and sign-in go with it."""
        if context_id not in self._contexts:
            return False
        self._drop(context_id)
        logger.info("Closed client context")
        return True

    def _evict_idle(self) -> None:
        cutoff = self._clock() - self._idle_seconds
        while self._contexts:
            oldest = next(iter(self._contexts))
            if self._last_seen[oldest] > cutoff:
                return
            self._drop(oldest)
            logger.info("Dropped idle client context")

    def _drop(self, context_id: str) -> None:
        context = self._contexts.pop(context_id)
        del self._last_seen[context_id]
        context.auth.sign_out()

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, context_id: object) -> bool:
        return context_id in self._contexts
