"""
Per-backend wire formats.

The three backends differ only in data: endpoint, headers, request envelope,
and where the generated text sits in whole and streamed responses. Each is
described by a ``WireFormat`` value consumed by the single ``ProviderClient``
implementation.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from routerchat.config import Settings
from routerchat.models import Backend, Role
from routerchat.providers.base import ChatMessage, ChatRequest
from routerchat.providers.http_client import error_message_from_payload

HUMAN_PROMPT = "\n\nHuman:"
ASSISTANT_PROMPT = "\n\nAssistant:"


@dataclass(frozen=True)
class WireFormat:
    """Tagged configuration describing one backend's HTTP protocol."""

    backend: Backend
    path: str
    base_url: Callable[[Settings], str]
    headers: Callable[[str, Settings], dict[str, str]]
    build_payload: Callable[[ChatRequest], dict[str, Any]]
    # Whole-response text; may raise KeyError/IndexError/TypeError on bad shapes.
    extract_text: Callable[[Any], str]
    extract_delta: Callable[[Any], str | None]
    extract_stream_error: Callable[[Any], str | None] = error_message_from_payload


def _bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def _anthropic_headers(api_key: str, settings: Settings) -> dict[str, str]:
    headers = _bearer_headers(api_key)
    headers["anthropic-version"] = settings.anthropic_version
    return headers


def _openrouter_headers(api_key: str, settings: Settings) -> dict[str, str]:
    headers = _bearer_headers(api_key)
    headers["HTTP-Referer"] = settings.openrouter_referer
    headers["X-Title"] = settings.openrouter_title
    return headers


def _format_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": msg.role, "content": msg.content} for msg in messages]


# Backend A: legacy completion endpoint, single prompt string.


def build_prompt(request: ChatRequest) -> str:
    """Render history as Human/Assistant turns; system entries are dropped."""
    parts: list[str] = []
    for entry in request.history:
        if entry.role == Role.USER:
            parts.append(f"{HUMAN_PROMPT} {entry.content}")
        elif entry.role == Role.ASSISTANT:
            parts.append(f"{ASSISTANT_PROMPT} {entry.content}")
    parts.append(f"{HUMAN_PROMPT} {request.text}{ASSISTANT_PROMPT}")
    return "".join(parts)


def _complete_payload(request: ChatRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": request.model,
        "prompt": build_prompt(request),
        "max_tokens_to_sample": request.max_tokens,
        "temperature": request.temperature,
    }
    if request.stream:
        payload["stream"] = True
    return payload


def _complete_text(body: Any) -> str:
    completion = body["completion"]
    if not isinstance(completion, str):
        raise TypeError("completion is not a string")
    return completion.strip()


def _text_delta(event: Any) -> str | None:
    return event["delta"]["text"]


# Backend B: message array; system turns move to a top-level field.


def _messages_payload(request: ChatRequest) -> dict[str, Any]:
    conversation = request.conversation()
    system_parts = [msg.content for msg in conversation if msg.role == Role.SYSTEM.value]
    messages = [msg for msg in conversation if msg.role != Role.SYSTEM.value]
    payload: dict[str, Any] = {
        "model": request.model,
        "messages": _format_messages(messages),
        "max_tokens": request.max_tokens,
        "temperature": request.temperature,
    }
    if system_parts:
        payload["system"] = "\n\n".join(system_parts)
    if request.stream:
        payload["stream"] = True
    return payload


def _messages_text(body: Any) -> str:
    text = body["content"][0]["text"]
    if not isinstance(text, str):
        raise TypeError("content text is not a string")
    return text


# Backend C: OpenAI-compatible chat completions; system turns pass through.


def _chat_completions_payload(request: ChatRequest) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": request.model,
        "messages": _format_messages(request.conversation()),
        "temperature": request.temperature,
    }
    if request.stream:
        payload["stream"] = True
    return payload


def _chat_completions_text(body: Any) -> str:
    content = body["choices"][0]["message"]["content"]
    if not isinstance(content, str):
        raise TypeError("message content is not a string")
    return content


def _choices_delta(event: Any) -> str | None:
    return event["choices"][0]["delta"].get("content")


WIRE_FORMATS: dict[Backend, WireFormat] = {
    Backend.ANTHROPIC_COMPLETE: WireFormat(
        backend=Backend.ANTHROPIC_COMPLETE,
        path="/v1/complete",
        base_url=lambda settings: settings.anthropic_base_url,
        headers=_anthropic_headers,
        build_payload=_complete_payload,
        extract_text=_complete_text,
        extract_delta=_text_delta,
    ),
    Backend.ANTHROPIC_MESSAGES: WireFormat(
        backend=Backend.ANTHROPIC_MESSAGES,
        path="/v1/messages",
        base_url=lambda settings: settings.anthropic_base_url,
        headers=_anthropic_headers,
        build_payload=_messages_payload,
        extract_text=_messages_text,
        extract_delta=_text_delta,
    ),
    Backend.OPENROUTER: WireFormat(
        backend=Backend.OPENROUTER,
        path="/chat/completions",
        base_url=lambda settings: settings.openrouter_base_url,
        headers=_openrouter_headers,
        build_payload=_chat_completions_payload,
        extract_text=_chat_completions_text,
        extract_delta=_choices_delta,
    ),
}
