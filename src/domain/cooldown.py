"""
Cooldown Timer - Gates verification code resend requests.

The countdown is not an interval callback: it is recomputed from the
deadline and the injected clock each time it is sampled, so it cannot
drift and is not blocked by in-flight network calls. Server-side rate
limiting stays authoritative; this only keeps the client from asking.
"""

import math
import time
from dataclasses import dataclass

from .ports import Clock


@dataclass
class CooldownTimer:
    """Per-session resend countdown. Re-arming resets it."""

    seconds: int = 60
    clock: Clock = time.monotonic
    deadline: float | None = None

    def arm(self) -> float:
        """Start (or restart) the countdown and return the new deadline."""
        self.deadline = self.clock() + self.seconds
        return self.deadline

    def disarm(self) -> None:
        self.deadline = None

    def remaining(self) -> int:
        """Whole seconds left before a resend is allowed (0 when ready)."""
        if self.deadline is None:
            return 0
        return max(0, math.ceil(self.deadline - self.clock()))

    @property
    def ready(self) -> bool:
        return self.deadline is None or self.clock() >= self.deadline
