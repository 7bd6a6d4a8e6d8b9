"""Feedback sink that records turn events in the application log."""

from __future__ import annotations

from routerchat.core import get_logger
from routerchat.services.ports import FeedbackType

logger = get_logger(__name__)


class LoggingFeedbackSink:
    """Feedback sink for headless deployments; can be switched off."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def play(self, kind: FeedbackType) -> None:
        if not self.enabled:
            return
        logger.debug("Feedback", data={"kind": kind.value})
