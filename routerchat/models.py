"""
Conversation data model.

Transcript entries are immutable values: a streamed assistant reply starts
as an empty placeholder and is replaced by a finalized copy, never edited
in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

SESSION_TITLE_LENGTH = 30
SESSION_PREVIEW_LENGTH = 50
DEFAULT_SESSION_TITLE = "New Chat"


def generate_id() -> str:
    """Generate a UUID string for entry and session identifiers."""
    return str(uuid4())


class Backend(str, Enum):
    """Upstream model-serving backends."""

    ANTHROPIC_COMPLETE = "anthropic_complete"
    ANTHROPIC_MESSAGES = "anthropic_messages"
    OPENROUTER = "openrouter"


class Role(str, Enum):
    """Speaker of a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class TranscriptEntry:
    """One turn of a conversation."""

    content: str
    role: Role
    backend: Backend
    model: str
    id: str = field(default_factory=generate_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def with_content(self, content: str) -> TranscriptEntry:
        """Return a finalized copy carrying ``content``; identity is kept."""
        return replace(self, content=content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "role": self.role.value,
            "timestamp": self.timestamp.isoformat(),
            "backend": self.backend.value,
            "model": self.model,
        }


@dataclass(frozen=True)
class ConversationSession:
    """Archived snapshot of a transcript, as shown in chat history."""

    id: str
    title: str
    preview: str
    created_at: datetime
    entries: tuple[TranscriptEntry, ...] = ()

    @classmethod
    def from_entries(
        cls,
        entries: list[TranscriptEntry] | tuple[TranscriptEntry, ...],
        session_id: str | None = None,
    ) -> ConversationSession:
        """
        Build a session from a transcript.

        The title is the first entry truncated (marked with an ellipsis when
        the conversation continues past it); the preview is the last entry
        truncated. Passing ``session_id`` keeps identity stable across saves.
        """
        entries = tuple(entries)
        if entries:
            title = entries[0].content[:SESSION_TITLE_LENGTH]
            if len(entries) > 1:
                title += "..."
            preview = entries[-1].content[:SESSION_PREVIEW_LENGTH] + "..."
        else:
            title = DEFAULT_SESSION_TITLE
            preview = ""
        return cls(
            id=session_id or generate_id(),
            title=title,
            preview=preview,
            created_at=datetime.now(UTC),
            entries=entries,
        )

    def to_dict(self, include_entries: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "preview": self.preview,
            "created_at": self.created_at.isoformat(),
            "message_count": len(self.entries),
        }
        if include_entries:
            data["entries"] = [entry.to_dict() for entry in self.entries]
        return data
