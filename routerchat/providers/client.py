"""Backend codec driven by a ``WireFormat`` description."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx

from routerchat.config import Settings
from routerchat.core import (
    InvalidResponseError,
    NetworkError,
    StreamingError,
    get_logger,
)
from routerchat.models import TranscriptEntry
from routerchat.providers.base import ChatRequest, DeltaCallback, ProviderCodec
from routerchat.providers.catalog import display_name
from routerchat.providers.http_client import (
    create_http_client,
    parse_json,
    raise_for_status,
    request_headers,
    send_request,
)
from routerchat.providers.streaming import StreamDecoder
from routerchat.providers.wire import WireFormat

logger = get_logger(__name__)


class ProviderClient(ProviderCodec):
    """Adapter for one backend, parameterized by its wire format."""

    def __init__(
        self,
        wire: WireFormat,
        api_key: str,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.wire = wire
        self.backend = wire.backend
        self.display_name = display_name(wire.backend)
        self.settings = settings
        self.decoder = StreamDecoder(wire.extract_delta, wire.extract_stream_error)
        self._in_flight = 0
        self.client = create_http_client(
            base_url=wire.base_url(settings),
            timeout_seconds=settings.request_timeout_seconds,
            headers=wire.headers(api_key, settings),
            transport=transport,
        )

    @property
    def in_flight(self) -> int:
        """Requests currently using the underlying HTTP client."""
        return self._in_flight

    async def aclose(self) -> None:
        await self.client.aclose()

    def _build_request(
        self, text: str, model: str, history: list[TranscriptEntry], stream: bool
    ) -> ChatRequest:
        return ChatRequest(
            text=text,
            model=model,
            history=list(history),
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            stream=stream,
        )

    async def complete(
        self, text: str, model: str, history: list[TranscriptEntry]
    ) -> str:
        """Send a single chat request (non-streaming)."""
        request = self._build_request(text, model, history, stream=False)
        self._in_flight += 1
        try:
            response = await send_request(
                self.client,
                "POST",
                self.wire.path,
                json=self.wire.build_payload(request),
                timeout=self.settings.request_timeout_seconds,
            )
        finally:
            self._in_flight -= 1
        raise_for_status(response, self.display_name)
        body = parse_json(response)

        try:
            return self.wire.extract_text(body)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            logger.warning(
                "Backend response missing expected fields",
                data={"backend": self.backend.value, "body": str(body)[:300]},
            )
            raise InvalidResponseError(details={"backend": self.backend.value}) from exc

    async def stream(
        self, text: str, model: str, history: list[TranscriptEntry]
    ) -> AsyncIterator[str]:
        """Stream cumulative reply text as it arrives."""
        request = self._build_request(text, model, history, stream=True)
        started = False
        self._in_flight += 1
        try:
            async with self.client.stream(
                "POST",
                self.wire.path,
                json=self.wire.build_payload(request),
                headers=request_headers(),
                timeout=self.settings.stream_timeout_seconds,
            ) as response:
                if not 200 <= response.status_code < 300:
                    await response.aread()
                    raise_for_status(response, self.display_name)
                started = True
                async for cumulative in self.decoder.decode(response.aiter_lines()):
                    yield cumulative
        except httpx.TimeoutException as exc:
            raise NetworkError(exc, details={"reason": str(exc)}) from exc
        except httpx.TransportError as exc:
            if started:
                logger.warning(
                    "Stream interrupted",
                    data={"backend": self.backend.value, "error": repr(exc)},
                )
                raise StreamingError(f"Connection lost during stream: {exc}") from exc
            raise NetworkError(exc, details={"reason": str(exc)}) from exc
        finally:
            self._in_flight -= 1

    async def complete_streaming(
        self,
        text: str,
        model: str,
        history: list[TranscriptEntry],
        on_delta: DeltaCallback,
    ) -> str:
        final_text = ""
        async for cumulative in self.stream(text, model, history):
            final_text = cumulative
            on_delta(cumulative)
        if not final_text:
            raise StreamingError("Stream ended without any content")
        return final_text
