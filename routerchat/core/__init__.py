"""Core module with errors, logging, events, metrics, and middleware."""

from routerchat.core.errors import (
    ApiError,
    AppError,
    ConfigurationError,
    ConflictError,
    CredentialNotFoundError,
    ErrorCode,
    ErrorResponse,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    StreamingError,
)
from routerchat.core.events import EventChannel
from routerchat.core.logging import get_logger, request_id_ctx, setup_logging, turn_id_ctx
from routerchat.core.metrics import metrics

__all__ = [
    "ApiError",
    "AppError",
    "ConfigurationError",
    "ConflictError",
    "CredentialNotFoundError",
    "ErrorCode",
    "ErrorResponse",
    "EventChannel",
    "InvalidResponseError",
    "NetworkError",
    "NotFoundError",
    "StreamingError",
    "get_logger",
    "metrics",
    "request_id_ctx",
    "setup_logging",
    "turn_id_ctx",
]
