"""Interfaces of the collaborators the chat service depends on."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol

from routerchat.models import Backend, TranscriptEntry


class CredentialStore(Protocol):
    """Secret store keyed by backend."""

    def get(self, backend: Backend) -> str:
        """Return the secret or raise ``CredentialNotFoundError``."""
        ...

    def put(self, backend: Backend, secret: str) -> None: ...

    def delete(self, backend: Backend) -> None: ...

    def exists(self, backend: Backend) -> bool: ...


class MessageStore(Protocol):
    """Durable, time-ordered store of finalized transcript entries."""

    def insert(self, entry: TranscriptEntry) -> None: ...

    def delete_all(self) -> None: ...

    def fetch_all_sorted_by_time(self) -> Sequence[TranscriptEntry]: ...


class FeedbackType(str, Enum):
    """Kinds of user feedback signalled during a turn."""

    SUCCESS = "success"
    ERROR = "error"
    SELECTION = "selection"
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class FeedbackSink(Protocol):
    """Fire-and-forget feedback notifications."""

    def play(self, kind: FeedbackType) -> None: ...
