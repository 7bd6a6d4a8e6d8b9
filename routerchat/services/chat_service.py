"""
Chat turn orchestration.

A turn inserts the user's entry optimistically, shows an empty assistant
placeholder while the reply streams in, and then either finalizes and
persists the placeholder or removes it. Every failure ends in exactly one
user-facing message; nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from routerchat.config import Settings
from routerchat.core import (
    ApiError,
    AppError,
    ConfigurationError,
    ErrorCode,
    EventChannel,
    InvalidResponseError,
    NetworkError,
    StreamingError,
    get_logger,
    metrics,
    turn_id_ctx,
)
from routerchat.models import (
    Backend,
    ConversationSession,
    Role,
    TranscriptEntry,
    generate_id,
)
from routerchat.providers.router import ProviderRouter, resolve_backend
from routerchat.services.ports import FeedbackSink, FeedbackType, MessageStore

logger = get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
INVALID_RESPONSE_MESSAGE = "Invalid response from server"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

metrics.register_counter("turns_total")
metrics.register_counter("turns_failed")
metrics.register_counter("stream_duration_seconds")
metrics.register_gauge("active_streams")


class TurnState(str, Enum):
    """Phases of a single send."""

    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_CREDENTIAL = "awaiting_credential"
    DISPATCHING = "dispatching"
    STREAMING = "streaming"
    PERSISTING = "persisting"


class TurnOutcome(str, Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class TurnResult:
    """What happened to one call of ``send_message``."""

    outcome: TurnOutcome
    message: TranscriptEntry | None = None
    error: AppError | None = None
    error_message: str | None = None


def user_message_for(error: AppError) -> str:
    """Translate an error into the text shown to the user."""
    if isinstance(error, ConfigurationError):
        return f"{error.message}. Add one in Settings."
    if isinstance(error, ApiError):
        return error.message
    if isinstance(error, NetworkError):
        return NETWORK_ERROR_MESSAGE
    if isinstance(error, InvalidResponseError):
        return INVALID_RESPONSE_MESSAGE
    if isinstance(error, StreamingError):
        return f"Streaming error: {error.message}"
    return UNEXPECTED_ERROR_MESSAGE


class ChatService:
    """Send orchestrator and owner of the in-memory transcript."""

    def __init__(
        self,
        router: ProviderRouter,
        store: MessageStore,
        feedback: FeedbackSink,
        settings: Settings,
    ):
        self.router = router
        self.store = store
        self.feedback = feedback
        self.settings = settings

        self.messages: list[TranscriptEntry] = []
        self.input_text = ""
        self.is_loading = False
        self.state = TurnState.IDLE
        self.streaming_message_id: str | None = None
        self.streamed_text = ""
        self.error_message: str | None = None

        self.selected_backend: Backend = settings.default_backend
        self.selected_model: str = settings.default_model
        self.model_manually_selected = False
        self.session_id = generate_id()

        self.stream_updates: EventChannel[str] = EventChannel("stream_updates")
        self.session_channel: EventChannel[ConversationSession] = EventChannel("sessions")

    # Selection

    def select_model(self, backend: Backend, model: str) -> None:
        """Record an explicit model choice; it survives new conversations."""
        self.selected_backend = backend
        self.selected_model = model
        self.model_manually_selected = True
        logger.info(
            "Model selected", data={"backend": backend.value, "model": model}
        )

    def reset_selection(self) -> None:
        self.selected_backend = self.settings.default_backend
        self.selected_model = self.settings.default_model
        self.model_manually_selected = False

    # Sending

    async def submit(self, text: str) -> TurnResult:
        """Set the input and send it, unless a turn is already in flight."""
        if self.is_loading:
            logger.warning("Submission rejected while a turn is in flight")
            return TurnResult(TurnOutcome.REJECTED)
        self.input_text = text
        return await self.send_message()

    async def send_message(self) -> TurnResult:
        if self.is_loading:
            logger.warning("Submission rejected while a turn is in flight")
            return TurnResult(TurnOutcome.REJECTED)

        self.state = TurnState.VALIDATING
        text = self.input_text
        if not text.strip():
            self.state = TurnState.IDLE
            return TurnResult(TurnOutcome.IGNORED)

        self.state = TurnState.AWAITING_CREDENTIAL
        selected = self.selected_backend
        model = self.selected_model
        backend = resolve_backend(selected, model)
        history = list(self.messages)
        user_entry = TranscriptEntry(
            content=text, role=Role.USER, backend=backend, model=model
        )
        metrics.increment("turns_total")

        try:
            codec = self.router.route(selected, model)
        except ConfigurationError as exc:
            # The user's text stays in the transcript; no placeholder is created.
            self._record_user_entry(user_entry)
            return self._finish_failed(exc)

        self._record_user_entry(user_entry)
        self.is_loading = True
        self.state = TurnState.DISPATCHING

        placeholder = TranscriptEntry(
            content="", role=Role.ASSISTANT, backend=backend, model=model
        )
        self.messages.append(placeholder)
        self.streaming_message_id = placeholder.id
        self.streamed_text = ""

        turn_token = turn_id_ctx.set(placeholder.id)
        metrics.set_gauge("active_streams", 1.0)
        started_at = time.perf_counter()
        logger.info(
            "Dispatching chat turn",
            data={"backend": backend.value, "model": model, "history": len(history)},
        )
        try:
            self.state = TurnState.STREAMING
            final_text = await codec.complete_streaming(
                text, model, history, self._on_delta
            )

            self.state = TurnState.PERSISTING
            completed = placeholder.with_content(final_text)
            if self._replace_entry(completed):
                self.store.insert(completed)
            else:
                logger.warning(
                    "Placeholder left the transcript before completion",
                    data={"message_id": placeholder.id},
                )
            self._clear_streaming()
            self.feedback.play(FeedbackType.SUCCESS)
            logger.info(
                "Chat turn completed",
                data={"backend": backend.value, "chars": len(final_text)},
            )
            result = TurnResult(TurnOutcome.COMPLETED, message=completed)
        except asyncio.CancelledError:
            self._remove_entry(placeholder.id)
            self._clear_streaming()
            raise
        except AppError as exc:
            result = self._rollback(placeholder, exc)
        except Exception as exc:
            logger.exception(
                "Unexpected error during chat turn",
                exc_info=exc,
                data={"backend": backend.value},
            )
            result = self._rollback(
                placeholder,
                AppError(ErrorCode.INTERNAL_ERROR, UNEXPECTED_ERROR_MESSAGE),
            )
        finally:
            metrics.observe("stream_duration_seconds", time.perf_counter() - started_at)
            metrics.set_gauge("active_streams", 0.0)
            turn_id_ctx.reset(turn_token)
            self.state = TurnState.IDLE
            self.is_loading = False
        return result

    def _on_delta(self, cumulative_text: str) -> None:
        self.streamed_text = cumulative_text
        self.stream_updates.publish(cumulative_text)

    def _record_user_entry(self, entry: TranscriptEntry) -> None:
        self.messages.append(entry)
        self.store.insert(entry)
        self.feedback.play(FeedbackType.SELECTION)
        self.input_text = ""

    def _replace_entry(self, entry: TranscriptEntry) -> bool:
        for index, existing in enumerate(self.messages):
            if existing.id == entry.id:
                self.messages[index] = entry
                return True
        return False

    def _remove_entry(self, entry_id: str) -> None:
        self.messages = [entry for entry in self.messages if entry.id != entry_id]

    def _clear_streaming(self) -> None:
        self.streaming_message_id = None
        self.streamed_text = ""

    def _rollback(self, placeholder: TranscriptEntry, error: AppError) -> TurnResult:
        self._remove_entry(placeholder.id)
        self._clear_streaming()
        return self._finish_failed(error)

    def _finish_failed(self, error: AppError) -> TurnResult:
        message = user_message_for(error)
        self.error_message = message
        self.feedback.play(FeedbackType.ERROR)
        metrics.increment("turns_failed")
        logger.warning(
            "Chat turn failed",
            data={"code": error.code.value, "message": error.message},
        )
        self.state = TurnState.IDLE
        self.is_loading = False
        return TurnResult(
            TurnOutcome.FAILED, error=error, error_message=message
        )

    def dismiss_error(self) -> None:
        self.error_message = None

    # Conversation lifecycle

    def start_new_chat(self) -> bool:
        """
        Archive the current transcript and start an empty one.

        Refused while a turn is in flight, since the running turn would
        otherwise write into the new conversation.
        """
        if self.is_loading:
            logger.warning("New chat refused while a turn is in flight")
            return False

        self._archive_current()
        self._reset_transcript()
        self.session_id = generate_id()
        self.error_message = None
        if not self.model_manually_selected:
            self.reset_selection()
        return True

    def restore_session(self, session: ConversationSession) -> bool:
        """Reopen an archived session; later saves replace it in history."""
        if self.is_loading:
            logger.warning("Session restore refused while a turn is in flight")
            return False

        # The open session may have grown since its history copy was taken.
        self._archive_current()
        if session.id == self.session_id and self.messages:
            self.error_message = None
            return True

        self._reset_transcript()
        for entry in session.entries:
            self.messages.append(entry)
            self.store.insert(entry)
        self.session_id = session.id
        self.error_message = None
        return True

    def _archive_current(self) -> None:
        if not self.messages:
            return
        session = ConversationSession.from_entries(self.messages, session_id=self.session_id)
        self.session_channel.publish(session)

    def clear_messages(self) -> bool:
        """Drop the transcript and its persisted rows; refused mid-turn."""
        if self.is_loading:
            logger.warning("Clear refused while a turn is in flight")
            return False
        self._reset_transcript()
        return True

    def _reset_transcript(self) -> None:
        self.messages = []
        self.store.delete_all()

    def load_persisted(self) -> None:
        """Fill the transcript from persistence, oldest first."""
        self.messages = list(self.store.fetch_all_sorted_by_time())
        logger.info("Transcript loaded", data={"entries": len(self.messages)})

    def snapshot(self) -> dict[str, Any]:
        """Current chat state for the HTTP surface."""
        return {
            "session_id": self.session_id,
            "backend": self.selected_backend.value,
            "model": self.selected_model,
            "model_manually_selected": self.model_manually_selected,
            "is_loading": self.is_loading,
            "state": self.state.value,
            "streaming_message_id": self.streaming_message_id,
            "streamed_text": self.streamed_text,
            "error_message": self.error_message,
            "messages": [entry.to_dict() for entry in self.messages],
        }
