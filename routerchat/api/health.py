"""
Health check endpoints.

Provides a liveness check and an in-process metrics snapshot.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from routerchat import __version__
from routerchat.core import metrics
from routerchat.db import verify_database_connection

router = APIRouter(tags=["health"])


@router.get("/health")
async def healthcheck(request: Request) -> dict[str, Any]:
    """
    Health check endpoint.

    Reports the service version and whether the database answers.
    """
    database_ok = verify_database_connection(request.app.state.engine)
    return {
        "status": "ok" if database_ok else "degraded",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
        "checks": {"database": database_ok},
    }


@router.get("/metrics")
async def metrics_snapshot() -> dict[str, dict[str, float]]:
    """Counters and gauges recorded since startup."""
    return metrics.snapshot()
