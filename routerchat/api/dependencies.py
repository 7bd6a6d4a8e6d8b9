"""Resolve application services from app state."""

from fastapi import Request

from routerchat.providers import ProviderRegistry
from routerchat.services.chat_service import ChatService
from routerchat.services.history import HistoryService
from routerchat.services.ports import CredentialStore


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def get_history_service(request: Request) -> HistoryService:
    return request.app.state.history_service


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.provider_registry


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store
