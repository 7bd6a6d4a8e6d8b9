"""
Router Chat application.

FastAPI application wiring the chat orchestrator, provider registry,
persistence, structured logging and error handling.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from routerchat import __version__
from routerchat.api import chat_router, health_router, history_router, providers_router
from routerchat.config import Settings, get_settings
from routerchat.core import get_logger, setup_logging
from routerchat.core.middleware import RequestContextMiddleware, setup_exception_handlers
from routerchat.db import build_engine, create_session_factory, init_db
from routerchat.db.repositories import MessageRepository, SqlCredentialStore
from routerchat.models import Backend
from routerchat.providers import ProviderRegistry, ProviderRouter
from routerchat.services.chat_service import ChatService
from routerchat.services.feedback import LoggingFeedbackSink
from routerchat.services.history import HistoryService

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    transport_overrides: dict[Backend, httpx.AsyncBaseTransport] | None = None,
    engine: Engine | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    ``transport_overrides`` and ``engine`` let tests swap the network and
    database without touching the environment.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        setup_logging(
            level=settings.log_level,
            json_output=not settings.debug,
            log_file=settings.log_file or None,
        )
        logger.info(
            "Starting Router Chat",
            data={
                "environment": settings.environment,
                "default_backend": settings.default_backend.value,
                "default_model": settings.default_model,
            },
        )

        db_engine = engine or build_engine(settings)
        owns_engine = engine is None
        init_db(db_engine)
        session_factory = create_session_factory(db_engine)

        credentials = SqlCredentialStore(session_factory)
        for backend, secret in settings.seeded_api_keys.items():
            if not credentials.exists(backend):
                credentials.put(backend, secret)

        registry = ProviderRegistry(settings, credentials, transport_overrides)
        chat_service = ChatService(
            router=ProviderRouter(registry),
            store=MessageRepository(session_factory),
            feedback=LoggingFeedbackSink(),
            settings=settings,
        )
        history_service = HistoryService()
        history_service.attach(chat_service.session_channel)
        chat_service.load_persisted()

        _app.state.engine = db_engine
        _app.state.credential_store = credentials
        _app.state.provider_registry = registry
        _app.state.chat_service = chat_service
        _app.state.history_service = history_service
        _app.state.start_time = datetime.now(UTC)

        yield

        # Shutdown
        logger.info("Shutting down Router Chat")
        history_service.detach()
        await registry.aclose()
        if owns_engine:
            db_engine.dispose()

    app = FastAPI(
        title="Router Chat",
        description="Chat client routing between Anthropic and OpenRouter backends",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Setup exception handlers (must be before middleware)
    setup_exception_handlers(app)

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(providers_router)
    app.include_router(chat_router)
    app.include_router(history_router)

    return app


# Create application instance
app = create_app()
