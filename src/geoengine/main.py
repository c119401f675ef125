"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import geocoding, health, location, routes, tracking
from .config import settings
from .services.engine import get_engine

logger = logging.getLogger(__name__)


def create_app(start_tracking: bool | None = None) -> FastAPI:
    run_broadcaster = settings.tracking_autostart if start_tracking is None else start_tracking

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_broadcaster:
            get_engine().broadcaster.start()
        yield
        if run_broadcaster:
            get_engine().broadcaster.stop(timeout=5.0)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(geocoding.router, prefix=settings.api_prefix)
    app.include_router(location.router, prefix=settings.api_prefix)
    app.include_router(routes.router, prefix=settings.api_prefix)
    app.include_router(tracking.router, prefix=settings.api_prefix)
    return app


app = create_app()
