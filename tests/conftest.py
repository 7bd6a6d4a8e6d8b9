"""Shared fixtures for the chat service, providers and HTTP surface."""

from __future__ import annotations

import pytest

from routerchat.config.settings import Settings
from routerchat.core import AppError
from routerchat.models import Backend, TranscriptEntry
from routerchat.providers.base import DeltaCallback, ProviderCodec
from routerchat.providers.router import ProviderRouter
from routerchat.services.chat_service import ChatService
from routerchat.services.ports import FeedbackType


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite://",
        "anthropic_base_url": "http://anthropic.test",
        "openrouter_base_url": "http://openrouter.test/api/v1",
        "anthropic_api_key": "",
        "openrouter_api_key": "",
        "default_backend": Backend.OPENROUTER,
        "default_model": "openai/gpt-4o",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class RecordingStore:
    """Message store that keeps inserted entries in a list."""

    def __init__(self) -> None:
        self.entries: list[TranscriptEntry] = []
        self.delete_all_calls = 0

    def insert(self, entry: TranscriptEntry) -> None:
        self.entries.append(entry)

    def delete_all(self) -> None:
        self.entries = []
        self.delete_all_calls += 1

    def fetch_all_sorted_by_time(self) -> list[TranscriptEntry]:
        return sorted(self.entries, key=lambda entry: entry.timestamp)


class RecordingFeedback:
    def __init__(self) -> None:
        self.played: list[FeedbackType] = []

    def play(self, kind: FeedbackType) -> None:
        self.played.append(kind)


class ScriptedCodec(ProviderCodec):
    """Codec that replays cumulative deltas and then returns or raises."""

    def __init__(
        self,
        backend: Backend,
        deltas: list[str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.backend = backend
        self.deltas = deltas or []
        self.error = error
        self.calls: list[tuple[str, str, list[TranscriptEntry]]] = []

    async def complete(self, text: str, model: str, history: list[TranscriptEntry]) -> str:
        self.calls.append((text, model, list(history)))
        if self.error is not None:
            raise self.error
        return self.deltas[-1] if self.deltas else ""

    async def complete_streaming(
        self,
        text: str,
        model: str,
        history: list[TranscriptEntry],
        on_delta: DeltaCallback,
    ) -> str:
        self.calls.append((text, model, list(history)))
        for cumulative in self.deltas:
            on_delta(cumulative)
        if self.error is not None:
            raise self.error
        return self.deltas[-1]


class StaticRegistry:
    """Codec source backed by a plain dict."""

    def __init__(self, codecs: dict[Backend, ProviderCodec] | None = None) -> None:
        self.codecs = dict(codecs or {})
        self.lookups: list[Backend] = []

    def get(self, backend: Backend) -> ProviderCodec | None:
        self.lookups.append(backend)
        return self.codecs.get(backend)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def feedback() -> RecordingFeedback:
    return RecordingFeedback()


@pytest.fixture
def registry() -> StaticRegistry:
    return StaticRegistry()


@pytest.fixture
def chat_service(
    registry: StaticRegistry,
    store: RecordingStore,
    feedback: RecordingFeedback,
    settings: Settings,
) -> ChatService:
    return ChatService(ProviderRouter(registry), store, feedback, settings)


def failing(error: AppError | Exception, deltas: list[str] | None = None) -> ScriptedCodec:
    return ScriptedCodec(Backend.ANTHROPIC_COMPLETE, deltas=deltas, error=error)
