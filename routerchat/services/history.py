"""Chat history: archived conversation sessions, newest first."""

from __future__ import annotations

from collections.abc import Callable

from routerchat.core import EventChannel, NotFoundError, get_logger
from routerchat.models import ConversationSession

logger = get_logger(__name__)


class HistoryService:
    """Keeps archived sessions delivered over the chat service's session channel."""

    def __init__(self) -> None:
        self._sessions: list[ConversationSession] = []
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, channel: EventChannel[ConversationSession]) -> None:
        """Subscribe to a session channel, replacing any previous subscription."""
        self.detach()
        self._unsubscribe = channel.subscribe(self.add)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def add(self, session: ConversationSession) -> None:
        """Replace a session with the same id in place, otherwise prepend it."""
        for index, existing in enumerate(self._sessions):
            if existing.id == session.id:
                self._sessions[index] = session
                logger.info("History session updated", data={"session_id": session.id})
                return
        self._sessions.insert(0, session)
        logger.info(
            "History session added",
            data={"session_id": session.id, "entries": len(session.entries)},
        )

    def list_sessions(self) -> list[ConversationSession]:
        return list(self._sessions)

    def get(self, session_id: str) -> ConversationSession:
        for session in self._sessions:
            if session.id == session_id:
                return session
        raise NotFoundError("Chat session not found")

    def delete(self, session_id: str) -> None:
        session = self.get(session_id)
        self._sessions.remove(session)
        logger.info("History session deleted", data={"session_id": session_id})
