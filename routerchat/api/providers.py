"""Provider catalog and credential endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from routerchat.api.dependencies import get_credential_store, get_registry
from routerchat.core import get_logger
from routerchat.models import Backend
from routerchat.providers import ProviderRegistry
from routerchat.services.ports import CredentialStore

logger = get_logger(__name__)

router = APIRouter(tags=["providers"])


class CredentialRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


@router.get("/providers")
async def list_providers(
    registry: ProviderRegistry = Depends(get_registry),
) -> list[dict[str, Any]]:
    """List backends with their models and whether a key is configured."""
    return registry.list_providers()


@router.put("/providers/{backend}/credential")
async def save_credential(
    backend: Backend,
    body: CredentialRequest,
    store: CredentialStore = Depends(get_credential_store),
    registry: ProviderRegistry = Depends(get_registry),
) -> dict[str, Any]:
    store.put(backend, body.api_key.strip())
    registry.invalidate(backend)
    await registry.close_retired()
    return {"id": backend.value, "configured": True}


@router.delete("/providers/{backend}/credential")
async def delete_credential(
    backend: Backend,
    store: CredentialStore = Depends(get_credential_store),
    registry: ProviderRegistry = Depends(get_registry),
) -> dict[str, Any]:
    store.delete(backend)
    registry.invalidate(backend)
    await registry.close_retired()
    return {"id": backend.value, "configured": False}
