"""Tests for transcript entries and archived sessions."""

from __future__ import annotations

from routerchat.models import Backend, ConversationSession, Role, TranscriptEntry


def _entry(content: str, role: Role = Role.USER) -> TranscriptEntry:
    return TranscriptEntry(content, role, Backend.OPENROUTER, "openai/gpt-4o")


def test_with_content_keeps_identity() -> None:
    placeholder = _entry("", Role.ASSISTANT)

    finished = placeholder.with_content("done")

    assert finished.id == placeholder.id
    assert finished.timestamp == placeholder.timestamp
    assert finished.content == "done"
    assert placeholder.content == ""


def test_session_title_and_preview_are_truncated() -> None:
    first = "a" * 40
    last = "b" * 60

    session = ConversationSession.from_entries([_entry(first), _entry(last, Role.ASSISTANT)])

    assert session.title == "a" * 30 + "..."
    assert session.preview == "b" * 50 + "..."
    assert len(session.entries) == 2


def test_single_entry_session_has_no_title_ellipsis() -> None:
    session = ConversationSession.from_entries([_entry("Hi")])

    assert session.title == "Hi"
    assert session.preview == "Hi..."


def test_empty_session_uses_default_title() -> None:
    session = ConversationSession.from_entries([])

    assert session.title == "New Chat"
    assert session.preview == ""


def test_session_id_is_reused() -> None:
    session = ConversationSession.from_entries([_entry("Hi")], session_id="fixed")

    assert session.id == "fixed"
    data = session.to_dict(include_entries=True)
    assert data["message_count"] == 1
    assert data["entries"][0]["backend"] == "openrouter"
