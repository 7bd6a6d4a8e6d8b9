"""Tests for backend codecs, error mapping and the provider registry."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

import httpx
import pytest

from conftest import make_settings
from routerchat.core import (
    ApiError,
    ErrorCode,
    InvalidResponseError,
    NetworkError,
    StreamingError,
)
from routerchat.db.repositories import InMemoryCredentialStore
from routerchat.models import Backend, Role, TranscriptEntry
from routerchat.providers import WIRE_FORMATS, ProviderClient, ProviderRegistry
from routerchat.providers.base import ChatRequest
from routerchat.providers.wire import build_prompt


def _history(backend: Backend, model: str) -> list[TranscriptEntry]:
    return [
        TranscriptEntry("Be brief.", Role.SYSTEM, backend, model),
        TranscriptEntry("Hi", Role.USER, backend, model),
        TranscriptEntry("Hello!", Role.ASSISTANT, backend, model),
    ]


def _client(backend: Backend, handler) -> ProviderClient:
    return ProviderClient(
        WIRE_FORMATS[backend],
        api_key="test-key",
        settings=make_settings(),
        transport=httpx.MockTransport(handler),
    )


def _sse(*events: object) -> bytes:
    lines = []
    for event in events:
        payload = event if isinstance(event, str) else json.dumps(event)
        lines.append(f"data: {payload}\n\n")
    return "".join(lines).encode()


@pytest.mark.asyncio
async def test_complete_backend_round_trip() -> None:
    """Legacy completion renders a Human/Assistant prompt and trims the reply."""
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"completion": "  Paris.  "})

    client = _client(Backend.ANTHROPIC_COMPLETE, handler)
    history = _history(Backend.ANTHROPIC_COMPLETE, "claude-2")

    text = await client.complete("Capital of France?", "claude-2", history)

    assert text == "Paris."
    request = captured[0]
    assert request.url == "http://anthropic.test/v1/complete"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body == {
        "model": "claude-2",
        "prompt": "\n\nHuman: Hi\n\nAssistant: Hello!\n\nHuman: Capital of France?\n\nAssistant:",
        "max_tokens_to_sample": 1000,
        "temperature": 0.7,
    }
    await client.aclose()


@pytest.mark.asyncio
async def test_messages_backend_round_trip() -> None:
    """Messages backend hoists system entries and reads the first content block."""
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200, json={"content": [{"type": "text", "text": "Paris."}], "role": "assistant"}
        )

    client = _client(Backend.ANTHROPIC_MESSAGES, handler)
    history = _history(Backend.ANTHROPIC_MESSAGES, "claude-3-haiku-20240307")

    text = await client.complete("Capital of France?", "claude-3-haiku-20240307", history)

    assert text == "Paris."
    request = captured[0]
    assert request.url == "http://anthropic.test/v1/messages"
    body = json.loads(request.content)
    assert body["system"] == "Be brief."
    assert body["max_tokens"] == 1000
    assert body["messages"] == [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Capital of France?"},
    ]
    assert "stream" not in body
    await client.aclose()


@pytest.mark.asyncio
async def test_openrouter_backend_round_trip() -> None:
    """OpenRouter sends identification headers and keeps system messages."""
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": "Paris."}}]}
        )

    client = _client(Backend.OPENROUTER, handler)
    history = _history(Backend.OPENROUTER, "openai/gpt-4o")

    text = await client.complete("Capital of France?", "openai/gpt-4o", history)

    assert text == "Paris."
    request = captured[0]
    assert request.url == "http://openrouter.test/api/v1/chat/completions"
    assert request.headers["HTTP-Referer"] == "Router Chat AI"
    assert request.headers["X-Title"] == "Router Chat AI (contact@routerchat.app)"
    assert "anthropic-version" not in request.headers
    body = json.loads(request.content)
    assert [msg["role"] for msg in body["messages"]] == ["system", "user", "assistant", "user"]
    assert "max_tokens" not in body
    await client.aclose()


def test_prompt_for_empty_history() -> None:
    request = ChatRequest(text="Hello", model="claude-2")
    assert build_prompt(request) == "\n\nHuman: Hello\n\nAssistant:"


@pytest.mark.asyncio
async def test_error_body_message_is_surfaced() -> None:
    client = _client(
        Backend.OPENROUTER,
        lambda request: httpx.Response(401, json={"error": {"message": "Invalid API key"}}),
    )

    with pytest.raises(ApiError) as exc:
        await client.complete("hi", "openai/gpt-4o", [])

    assert exc.value.message == "Invalid API key"
    assert exc.value.code == ErrorCode.PROVIDER_ERROR
    await client.aclose()


@pytest.mark.asyncio
async def test_unparseable_error_body_names_backend_and_status() -> None:
    client = _client(
        Backend.ANTHROPIC_MESSAGES,
        lambda request: httpx.Response(500, text="<html>oops</html>"),
    )

    with pytest.raises(ApiError) as exc:
        await client.complete("hi", "claude-3-haiku-20240307", [])

    assert exc.value.message == "Anthropic Messages HTTP 500"
    await client.aclose()


@pytest.mark.asyncio
async def test_timeout_maps_to_network_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timeout")

    client = _client(Backend.ANTHROPIC_COMPLETE, handler)

    with pytest.raises(NetworkError) as exc:
        await client.complete("hi", "claude-2", [])

    assert exc.value.code == ErrorCode.PROVIDER_UNAVAILABLE
    await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json={"choices": []}),
    ],
)
async def test_malformed_success_maps_to_invalid_response(response) -> None:
    client = _client(Backend.OPENROUTER, lambda request: response)

    with pytest.raises(InvalidResponseError):
        await client.complete("hi", "openai/gpt-4o", [])
    await client.aclose()


@pytest.mark.asyncio
async def test_streaming_reports_cumulative_text() -> None:
    captured: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(json.loads(request.content))
        body = _sse(
            {"type": "message_start"},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "He"}},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "llo"}},
            {"type": "message_stop"},
        )
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    client = _client(Backend.ANTHROPIC_MESSAGES, handler)
    deltas: list[str] = []

    text = await client.complete_streaming("hi", "claude-3-haiku-20240307", [], deltas.append)

    assert text == "Hello"
    assert deltas == ["He", "Hello"]
    assert captured[0]["stream"] is True
    await client.aclose()


@pytest.mark.asyncio
async def test_streaming_openrouter_stops_at_done() -> None:
    body = _sse(
        {"choices": [{"delta": {"role": "assistant"}}]},
        {"choices": [{"delta": {"content": "Hi"}}]},
        {"choices": [{"delta": {"content": " there"}}]},
        "[DONE]",
        {"choices": [{"delta": {"content": "ignored"}}]},
    )
    client = _client(Backend.OPENROUTER, lambda request: httpx.Response(200, content=body))

    text = await client.complete_streaming("hi", "openai/gpt-4o", [], lambda _: None)

    assert text == "Hi there"
    await client.aclose()


@pytest.mark.asyncio
async def test_stream_error_event_raises_streaming_error() -> None:
    body = _sse(
        {"delta": {"text": "partial"}},
        {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
    )
    client = _client(Backend.ANTHROPIC_COMPLETE, lambda request: httpx.Response(200, content=body))

    with pytest.raises(StreamingError) as exc:
        await client.complete_streaming("hi", "claude-2", [], lambda _: None)

    assert exc.value.message == "Overloaded"
    await client.aclose()


@pytest.mark.asyncio
async def test_stream_without_content_raises_streaming_error() -> None:
    client = _client(
        Backend.OPENROUTER, lambda request: httpx.Response(200, content=_sse("[DONE]"))
    )

    with pytest.raises(StreamingError):
        await client.complete_streaming("hi", "openai/gpt-4o", [], lambda _: None)
    await client.aclose()


@pytest.mark.asyncio
async def test_stream_http_error_maps_to_api_error() -> None:
    client = _client(
        Backend.OPENROUTER,
        lambda request: httpx.Response(429, json={"error": {"message": "Rate limited"}}),
    )

    with pytest.raises(ApiError) as exc:
        await client.complete_streaming("hi", "openai/gpt-4o", [], lambda _: None)

    assert exc.value.message == "Rate limited"
    await client.aclose()


class _DroppingStream(httpx.AsyncByteStream):
    """Yields one event and then loses the connection."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield _sse({"choices": [{"delta": {"content": "Hal"}}]})
        raise httpx.ReadError("connection reset")


@pytest.mark.asyncio
async def test_connection_drop_mid_stream_maps_to_streaming_error() -> None:
    client = _client(
        Backend.OPENROUTER, lambda request: httpx.Response(200, stream=_DroppingStream())
    )
    deltas: list[str] = []

    with pytest.raises(StreamingError) as exc:
        await client.complete_streaming("hi", "openai/gpt-4o", [], deltas.append)

    assert deltas == ["Hal"]
    assert "Connection lost during stream" in exc.value.message
    await client.aclose()


@pytest.mark.asyncio
async def test_connect_failure_before_stream_maps_to_network_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure")

    client = _client(Backend.OPENROUTER, handler)

    with pytest.raises(NetworkError):
        await client.complete_streaming("hi", "openai/gpt-4o", [], lambda _: None)
    await client.aclose()


@pytest.mark.asyncio
async def test_registry_builds_codec_only_with_credential() -> None:
    credentials = InMemoryCredentialStore()
    registry = ProviderRegistry(make_settings(), credentials)

    assert registry.get(Backend.OPENROUTER) is None

    credentials.put(Backend.OPENROUTER, "key-1")
    first = registry.get(Backend.OPENROUTER)
    assert first is not None
    assert registry.get(Backend.OPENROUTER) is first

    credentials.put(Backend.OPENROUTER, "key-2")
    second = registry.get(Backend.OPENROUTER)
    assert second is not first
    assert second.client.headers["Authorization"] == "Bearer key-2"

    credentials.delete(Backend.OPENROUTER)
    assert registry.get(Backend.OPENROUTER) is None
    await registry.aclose()


@pytest.mark.asyncio
async def test_registry_lists_catalog_with_configured_flags() -> None:
    credentials = InMemoryCredentialStore({Backend.ANTHROPIC_MESSAGES: "key"})
    registry = ProviderRegistry(make_settings(), credentials)

    providers = {entry["id"]: entry for entry in registry.list_providers()}

    assert set(providers) == {"anthropic_complete", "anthropic_messages", "openrouter"}
    assert providers["anthropic_messages"]["configured"] is True
    assert providers["openrouter"]["configured"] is False
    assert providers["anthropic_complete"]["models"] == ["claude-2", "claude-instant-1"]
    assert providers["openrouter"]["default_model"] == "openai/gpt-4o"
    assert providers["openrouter"]["credential_label"] == "OpenRouter API Key"
    await registry.aclose()


@pytest.mark.asyncio
async def test_registry_uses_transport_override() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"completion": "ok"})
    )
    registry = ProviderRegistry(
        make_settings(),
        InMemoryCredentialStore({Backend.ANTHROPIC_COMPLETE: "key"}),
        transport_overrides={Backend.ANTHROPIC_COMPLETE: transport},
    )

    codec = registry.get(Backend.ANTHROPIC_COMPLETE)

    assert await codec.complete("hi", "claude-2", []) == "ok"
    await registry.aclose()


@pytest.mark.asyncio
async def test_registry_closes_replaced_clients_once_idle() -> None:
    gate = asyncio.Event()

    async def handler(_request: httpx.Request) -> httpx.Response:
        await gate.wait()
        return httpx.Response(200, json={"choices": [{"message": {"content": "late"}}]})

    credentials = InMemoryCredentialStore({Backend.OPENROUTER: "key-1"})
    registry = ProviderRegistry(
        make_settings(),
        credentials,
        transport_overrides={Backend.OPENROUTER: httpx.MockTransport(handler)},
    )
    first = registry.get(Backend.OPENROUTER)
    pending = asyncio.create_task(first.complete("hi", "openai/gpt-4o", []))
    while first.in_flight == 0:
        await asyncio.sleep(0)

    credentials.put(Backend.OPENROUTER, "key-2")
    second = registry.get(Backend.OPENROUTER)
    assert second is not first
    assert await registry.close_retired() == 0
    assert first.client.is_closed is False

    gate.set()
    assert await pending == "late"
    assert first.in_flight == 0
    assert await registry.close_retired() == 1
    assert first.client.is_closed is True
    assert await registry.close_retired() == 0
    await registry.aclose()
