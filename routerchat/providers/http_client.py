"""
Shared HTTP client helpers for backend codecs.

Provides consistent timeouts and error mapping so every backend raises the
same error types for the same failure. Requests are never retried.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from routerchat.core import (
    ApiError,
    InvalidResponseError,
    NetworkError,
    get_logger,
    request_id_ctx,
)

logger = get_logger(__name__)


def create_http_client(
    base_url: str,
    timeout_seconds: float,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an AsyncClient with consistent timeout settings.

    Args:
        base_url: Base URL for the backend.
        timeout_seconds: Default timeout; individual calls may override it.
        headers: Default headers to include.
        transport: Optional transport (used by tests with MockTransport).
    """
    timeout = httpx.Timeout(timeout_seconds)
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        headers=headers or {},
        transport=transport,
    )


def request_headers(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Per-request headers, propagating the current request ID."""
    headers = dict(extra or {})
    request_id = request_id_ctx.get()
    if request_id and "X-Request-ID" not in headers:
        headers["X-Request-ID"] = request_id
    return headers


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Execute a single HTTP request, mapping transport failures."""
    kwargs["headers"] = request_headers(kwargs.pop("headers", None))
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TransportError as exc:
        logger.warning(
            "Backend request failed",
            data={"url": url, "error": repr(exc)},
        )
        raise NetworkError(exc, details={"reason": str(exc)}) from exc


def raise_for_status(response: httpx.Response, backend_name: str) -> None:
    """
    Map a non-2xx response to ``ApiError``.

    The backend's own error message is used when the body carries one;
    otherwise the message names the backend and the status code. The body
    must already be read.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    message = extract_error_message(response)
    details = _safe_error_details(response)
    logger.warning(
        "Backend returned error status",
        data={"backend": backend_name, **details},
    )
    if message:
        raise ApiError(message, details=details)
    raise ApiError(f"{backend_name} HTTP {status}", details=details)


def extract_error_message(response: httpx.Response) -> str | None:
    """Pull ``error.message`` (or a bare ``error`` string) from a body."""
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return error_message_from_payload(payload)


def error_message_from_payload(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    elif isinstance(error, str) and error:
        return error
    return None


def parse_json(response: httpx.Response) -> Any:
    """
    Parse JSON with consistent error handling.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        snippet = response.text[:500] if response.text else ""
        raise InvalidResponseError(details={"body": snippet}) from exc


def _safe_error_details(response: httpx.Response) -> dict[str, Any]:
    """Return a small, non-sensitive error payload for debugging."""
    try:
        body_snippet = response.text[:300] if response.text else ""
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        body_snippet = ""

    return {
        "status": response.status_code,
        "body": body_snippet,
        "url": str(response.request.url) if response.request else None,
    }
