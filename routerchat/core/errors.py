"""
Structured error handling with stable error codes.

Every failure a chat turn can hit is mapped to one of these types so the
orchestrator can translate it into a single user-facing message, and the
HTTP layer can render it without exposing stack traces.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API responses."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    CONFLICT = "E1003"

    # Configuration errors (2xxx)
    CONFIGURATION_ERROR = "E2000"
    CREDENTIAL_NOT_FOUND = "E2001"

    # Provider errors (4xxx)
    PROVIDER_UNAVAILABLE = "E4000"
    PROVIDER_ERROR = "E4001"
    STREAMING_ERROR = "E4003"
    PROVIDER_BAD_RESPONSE = "E4004"


@dataclass(frozen=True)
class ErrorResponse:
    """Structured error response for API.

    Format: {error: {code, message, request_id, details?}}
    """

    code: ErrorCode
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        error: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.request_id:
            error["request_id"] = self.request_id
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AppError(Exception):
    """Base application error with structured error detail."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_response(self, request_id: str | None = None) -> ErrorResponse:
        """Create error response with request ID."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            request_id=request_id,
            details=self.details,
        )


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(ErrorCode.NOT_FOUND, message, 404)


class ConflictError(AppError):
    """Operation conflicts with a turn in progress (409)."""

    def __init__(self, message: str = "A message is already being sent"):
        super().__init__(ErrorCode.CONFLICT, message, 409)


class ConfigurationError(AppError):
    """No credential is configured for the backend a turn needs."""

    def __init__(self, backend_name: str, details: dict[str, Any] | None = None):
        self.backend_name = backend_name
        super().__init__(
            ErrorCode.CONFIGURATION_ERROR,
            f"No API key configured for {backend_name}",
            400,
            details,
        )


class CredentialNotFoundError(AppError):
    """Credential store has no secret for the backend (404)."""

    def __init__(self, backend_id: str):
        self.backend_id = backend_id
        super().__init__(
            ErrorCode.CREDENTIAL_NOT_FOUND,
            f"API key not found for {backend_id}",
            404,
        )


class ApiError(AppError):
    """Backend rejected the request; message is the backend's own (502)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.PROVIDER_ERROR, message, 502, details)


class NetworkError(AppError):
    """Transport-level failure: connection, DNS, TLS or timeout (503)."""

    def __init__(self, cause: Exception | str, details: dict[str, Any] | None = None):
        self.cause = cause
        super().__init__(
            ErrorCode.PROVIDER_UNAVAILABLE,
            f"Provider unavailable: {cause}",
            503,
            details,
        )


class InvalidResponseError(AppError):
    """Backend answered 2xx with a body missing expected fields (502)."""

    def __init__(
        self,
        message: str = "Provider returned invalid response",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(ErrorCode.PROVIDER_BAD_RESPONSE, message, 502, details)


class StreamingError(AppError):
    """Failure specific to the incremental path, possibly after partial output."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.STREAMING_ERROR, message, 502, details)
