# src/fiberviability/api/app.py
"""
FastAPI application wiring.

`create_app()` builds the application; settings and the resolver are created once
(at startup, in the lifespan) and injected into routes through `app.state`.
Tests and embedders can pass their own `settings`/`resolver` instead.
Business logic lives in `fiberviability.resolver` and `fiberviability.validation`.

Serve with an ASGI server in factory mode, e.g. `uvicorn fiberviability.api.app:create_app --factory`.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware

from fiberviability.config.settings import Settings, get_settings
from fiberviability.core.logging import configure_logging
from fiberviability.resolver.proximity import ProximityResolver, build_resolver

from .health import router as health_router
from .routes import router


def create_app(settings: Settings | None = None, resolver: ProximityResolver | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.resolver is None:
            app.state.resolver = build_resolver(settings)
        yield

    app = FastAPI(title=settings.app.name, version=settings.app.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.resolver = resolver

    # CORS: the map frontend calls this API from another origin.
    # - FIBERVIABILITY_CORS_ORIGINS="https://app.example,http://localhost:3000"
    # - FRONTEND_URL is honored as a single origin when the list is unset.
    cors_origins = [s.strip() for s in os.getenv("FIBERVIABILITY_CORS_ORIGINS", "").split(",") if s.strip()]
    if not cors_origins:
        cors_origins = [os.getenv("FRONTEND_URL", "http://localhost:3000")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    app.include_router(router)
    app.include_router(health_router)

    @app.get("/")
    def index(request: Request) -> dict:
        """Describe the service and its endpoints."""
        base = str(request.base_url).rstrip("/")
        return {
            "service": settings.app.name,
            "version": settings.app.version,
            "environment": settings.app.environment,
            "endpoints": {
                "viability": f"{base}/api/viability?lat={{latitude}}&lng={{longitude}}&radius={{meters}}",
                "search": f"{base}/api/search?q={{term}}",
                "area": f"{base}/api/area?north={{lat}}&south={{lat}}&east={{lng}}&west={{lng}}",
                "statistics": f"{base}/api/statistics",
                "health": f"{base}/health",
            },
        }

    return app
