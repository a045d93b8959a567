"""
Step Guard - Reentrancy lock for confirmation actions.

The controllers run on one cooperative event loop, so a plain flag is
enough: check-and-set happens without an await in between.
"""

from collections.abc import Callable

Release = Callable[[], None]


class StepGuard:
    """Boolean lock held while one confirmable action is in flight."""

    def __init__(self) -> None:
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_enter(self) -> Release | None:
        """
        Acquire the guard.

        Returns None if it is already held (caller treats that as busy),
        otherwise a release handle. The handle must be called on every exit
        path; calling it more than once is harmless.
        """
        if self._held:
            return None
        self._held = True
        released = False

        def release() -> None:
            nonlocal released
            if not released:
                released = True
                self._held = False

        return release
