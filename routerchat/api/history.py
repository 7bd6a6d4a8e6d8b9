"""Chat history endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from routerchat.api.dependencies import get_chat_service, get_history_service
from routerchat.core import ConflictError
from routerchat.services.chat_service import ChatService
from routerchat.services.history import HistoryService

router = APIRouter(tags=["history"])


@router.get("/history")
async def list_history(
    history: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    return {"sessions": [session.to_dict() for session in history.list_sessions()]}


@router.get("/history/{session_id}")
async def get_history_session(
    session_id: str,
    history: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    return {"session": history.get(session_id).to_dict(include_entries=True)}


@router.delete("/history/{session_id}")
async def delete_history_session(
    session_id: str,
    history: HistoryService = Depends(get_history_service),
) -> dict[str, Any]:
    history.delete(session_id)
    return {"status": "deleted", "session_id": session_id}


@router.post("/history/{session_id}/restore")
async def restore_history_session(
    session_id: str,
    history: HistoryService = Depends(get_history_service),
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Reopen an archived conversation as the current transcript."""
    session = history.get(session_id)
    if not chat_service.restore_session(session):
        raise ConflictError()
    return chat_service.snapshot()
