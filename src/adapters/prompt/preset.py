"""
Preset prompt adapter - Implements ConfirmationPrompt protocol.

Over HTTP the yes/no prompt is answered by the UI before the request is
sent, so the answer travels with the request and is replayed here.
"""

import logging

logger = logging.getLogger(__name__)


class PresetAnswerPrompt:
    """
    Implements ConfirmationPrompt protocol with a fixed answer.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, answer: bool) -> None:
        self._answer = answer

    async def confirm(self, title: str, message: str) -> bool:
        if not self._answer:
            logger.info("Prompt declined: %s", title)
        return self._answer
