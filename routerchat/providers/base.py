"""
Base provider interface.

Defines the contract every backend codec implements, plus the
backend-neutral request types that wire formats translate from.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from routerchat.models import Backend, Role, TranscriptEntry

DeltaCallback = Callable[[str], None]


@dataclass
class ChatMessage:
    """A single role/content pair in backend-neutral form."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class ChatRequest:
    """One chat turn: prior history plus the new user text."""

    text: str
    model: str
    history: list[TranscriptEntry] = field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 1000
    stream: bool = False

    def conversation(self) -> list[ChatMessage]:
        """History followed by the new user turn, in order."""
        messages = [
            ChatMessage(role=entry.role.value, content=entry.content)
            for entry in self.history
        ]
        messages.append(ChatMessage(role=Role.USER.value, content=self.text))
        return messages


class ProviderCodec(ABC):
    """
    Abstract base class for backend codecs.

    Both operations return the final reply text or raise an ``AppError``
    subclass: ``ApiError``, ``NetworkError``, ``InvalidResponseError`` or,
    for the streaming path, ``StreamingError``.
    """

    backend: Backend

    async def aclose(self) -> None:
        """Close any underlying resources (optional)."""
        return None

    @abstractmethod
    async def complete(
        self, text: str, model: str, history: list[TranscriptEntry]
    ) -> str:
        """Send a turn and wait for the whole reply."""
        ...

    @abstractmethod
    async def complete_streaming(
        self,
        text: str,
        model: str,
        history: list[TranscriptEntry],
        on_delta: DeltaCallback,
    ) -> str:
        """
        Send a turn and stream the reply.

        ``on_delta`` receives the cumulative text so far, never a diff. Text
        already delivered through it is not rolled back if the stream later
        fails.
        """
        ...
