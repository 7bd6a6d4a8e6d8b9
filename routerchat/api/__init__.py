"""API routers."""

from routerchat.api.chat import router as chat_router
from routerchat.api.health import router as health_router
from routerchat.api.history import router as history_router
from routerchat.api.providers import router as providers_router

__all__ = [
    "chat_router",
    "health_router",
    "history_router",
    "providers_router",
]
