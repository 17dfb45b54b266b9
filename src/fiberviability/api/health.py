"""
Health endpoints.

- GET `/health`: liveness payload (cheap, no store access).
- GET `/health/ping`: plain `pong` for load balancers.
- GET `/health/detailed`: runs a trivial store query; 503 when the store is down.
"""

from __future__ import annotations

import platform
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

router = APIRouter(prefix="/health")

_STARTED_MONOTONIC = time.monotonic()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def get_health(request: Request) -> dict:
    settings = request.app.state.settings
    return {
        "service": settings.app.name,
        "status": "UP",
        "version": settings.app.version,
        "environment": settings.app.environment,
        "python_version": platform.python_version(),
        "uptime_seconds": round(time.monotonic() - _STARTED_MONOTONIC, 1),
        "timestamp": _now(),
    }


@router.get("/ping", response_class=PlainTextResponse)
def get_ping() -> str:
    return "pong"


@router.get("/detailed")
def get_health_detailed(request: Request) -> JSONResponse:
    settings = request.app.state.settings
    resolver = request.app.state.resolver
    store_check: dict = {"backend": resolver.store.backend}
    if resolver.store.backend == "bigquery":
        store_check.update(
            {
                "project_id": settings.bigquery.project_id,
                "dataset": settings.bigquery.dataset,
                "location": settings.bigquery.location,
            }
        )

    up = resolver.check_connection()
    store_check["status"] = "UP" if up else "DOWN"
    payload = {
        "service": settings.app.name,
        "timestamp": _now(),
        "checks": {"api": {"status": "UP"}, "store": store_check},
    }
    return JSONResponse(status_code=200 if up else 503, content=payload)
