"""Tests for the logging feedback sink."""

from __future__ import annotations

from unittest.mock import patch

from routerchat.services import feedback as feedback_module
from routerchat.services.feedback import LoggingFeedbackSink
from routerchat.services.ports import FeedbackType


def test_play_logs_when_enabled() -> None:
    sink = LoggingFeedbackSink()

    with patch.object(feedback_module.logger, "debug") as debug:
        sink.play(FeedbackType.SUCCESS)

    debug.assert_called_once_with("Feedback", data={"kind": "success"})


def test_disabled_sink_is_silent() -> None:
    sink = LoggingFeedbackSink()
    sink.set_enabled(False)

    with patch.object(feedback_module.logger, "debug") as debug:
        sink.play(FeedbackType.ERROR)

    debug.assert_not_called()
