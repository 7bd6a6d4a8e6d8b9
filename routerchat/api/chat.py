"""Chat endpoints: current transcript, model selection and streamed sends."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from routerchat.api.dependencies import get_chat_service
from routerchat.core import ConflictError, get_logger
from routerchat.core.logging import request_id_ctx
from routerchat.models import Backend
from routerchat.services.chat_service import ChatService, TurnOutcome, TurnResult

logger = get_logger(__name__)

router = APIRouter(tags=["chat"])

# Turns outlive the response that started them if the client disconnects.
_turn_tasks: set[asyncio.Task[TurnResult]] = set()


class SendMessageRequest(BaseModel):
    input: str = Field(..., max_length=100_000)


class SelectionRequest(BaseModel):
    backend: Backend
    model: str = Field(..., min_length=1, max_length=128)


def format_sse_event(event: str, payload: dict[str, Any]) -> str:
    """Serialize an event to SSE format."""
    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _result_event(result: TurnResult) -> str:
    if result.outcome is TurnOutcome.COMPLETED and result.message is not None:
        return format_sse_event("final", {"message": result.message.to_dict()})
    if result.outcome is TurnOutcome.FAILED:
        payload: dict[str, Any] = {"message": result.error_message}
        if result.error is not None:
            payload["code"] = result.error.code.value
        return format_sse_event("error", payload)
    return format_sse_event(result.outcome.value, {})


@router.get("/chat")
async def get_chat(chat_service: ChatService = Depends(get_chat_service)) -> dict[str, Any]:
    return chat_service.snapshot()


@router.post("/chat/messages")
async def send_message_route(
    body: SendMessageRequest = Body(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """
    Send the input and stream the reply as server-sent events.

    ``delta`` events carry the cumulative assistant text. The stream ends
    with ``final``, ``error`` or ``ignored``.
    """
    if chat_service.is_loading:
        raise ConflictError()

    queue: asyncio.Queue[str | None] = asyncio.Queue()
    unsubscribe = chat_service.stream_updates.subscribe(queue.put_nowait)
    task = asyncio.create_task(chat_service.submit(body.input))
    _turn_tasks.add(task)
    task.add_done_callback(_turn_tasks.discard)
    task.add_done_callback(lambda _: queue.put_nowait(None))

    async def events() -> AsyncIterator[str]:
        try:
            while True:
                text = await queue.get()
                if text is None:
                    break
                yield format_sse_event("delta", {"text": text})
            if task.cancelled():
                yield format_sse_event("error", {"message": "Turn was cancelled"})
                return
            exc = task.exception()
            if exc is not None:
                logger.error("Chat turn task failed", data={"error": str(exc)})
                yield format_sse_event("error", {"message": "An unexpected error occurred"})
                return
            yield _result_event(task.result())
        finally:
            unsubscribe()

    request_id = request_id_ctx.get()
    headers = {"X-Request-ID": request_id} if request_id else {}
    return StreamingResponse(events(), media_type="text/event-stream", headers=headers)


@router.put("/chat/selection")
async def update_selection(
    body: SelectionRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    chat_service.select_model(body.backend, body.model)
    return chat_service.snapshot()


@router.post("/chat/new")
async def start_new_chat(
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Archive the current conversation to history and start an empty one."""
    if not chat_service.start_new_chat():
        raise ConflictError()
    return chat_service.snapshot()


@router.delete("/chat/messages")
async def clear_chat(
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    if not chat_service.clear_messages():
        raise ConflictError()
    return chat_service.snapshot()


@router.delete("/chat/error")
async def dismiss_error(
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    chat_service.dismiss_error()
    return chat_service.snapshot()
