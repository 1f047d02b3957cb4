"""Audio feedback port. The core fires named cues and never waits on or branches on them."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

CUE_ITEM_ADDED = "item_added"
CUE_ITEM_REMOVED = "item_removed"
CUE_PAYMENT_CONFIRMED = "payment_confirmed"
CUE_DOCUMENT_STAMPED = "document_stamped"
CUE_OPERATION_REVERTED = "operation_reverted"
CUE_NOTIFICATION = "notification"

ALL_CUES = (
    CUE_ITEM_ADDED,
    CUE_ITEM_REMOVED,
    CUE_PAYMENT_CONFIRMED,
    CUE_DOCUMENT_STAMPED,
    CUE_OPERATION_REVERTED,
    CUE_NOTIFICATION,
)


class FeedbackSink(Protocol):
    def play(self, cue: str) -> None:
        ...


class LoggingFeedback:
    """Default sink for headless installs: cues go to the debug log."""

    def play(self, cue: str) -> None:
        logger.debug("feedback cue: %s", cue)

