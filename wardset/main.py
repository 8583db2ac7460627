"""
FastAPI application entrypoint.

Startup sequence:
  1. Configure structured logging.
  2. Register versioned routers.
  3. Register global exception handlers.
  4. Optionally attach rate limiter.

The app is served by Uvicorn:

    uvicorn wardset.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore
from slowapi.middleware import SlowAPIMiddleware  # type: ignore
from slowapi.util import get_remote_address  # type: ignore

from wardset.api.v1.endpoints.health import router as health_router
from wardset.api.v1.router import v1_router
from wardset.core.config import Settings, get_settings
from wardset.core.errors import register_exception_handlers
from wardset.core.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan handler.
    Everything before `yield` runs at startup; everything after at shutdown.
    """
    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_logs=settings.log_json,
        service=settings.app_name,
    )

    logger.info(
        "Starting %s v%s [%s]",
        settings.app_name,
        settings.app_version,
        settings.environment,
    )
    logger.info(
        "Auth: %s | Rate limiting: %s | Max items: %d | Default sizes: [%d, %d] (%s)",
        "enabled" if settings.auth_enabled else "disabled (open mode)",
        "enabled" if settings.rate_limit_enabled else "disabled",
        settings.max_items,
        settings.default_min_cluster_size,
        settings.default_max_cluster_size,
        settings.default_undersized_policy,
    )

    yield

    logger.info("Shutting down %s.", settings.app_name)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="wardset-api",
        description=(
            "Groups items into clusters of bounded size.\n\n"
            "Callers submit one embedding per item (for example image features, "
            "optionally with categorical labels) together with a minimum and "
            "maximum cluster size. The service runs Ward-linkage agglomerative "
            "clustering capped at the maximum size, splits any cluster that is "
            "still too large, and validates the result against both bounds.\n\n"
            "**Authentication**: Pass your API key in the `X-Api-Key` header. "
            "Authentication is disabled when the `API_KEY` environment variable is unset."
        ),
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # CORS: restrict in production via environment variable if needed.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    if settings.rate_limit_enabled:
        _attach_rate_limiter(app, settings)

    # Routers.
    app.include_router(health_router)   # /health (no prefix, no auth)
    app.include_router(v1_router)       # /v1/cluster

    # Global exception handlers (must come after routers).
    register_exception_handlers(app)

    return app


def _attach_rate_limiter(app: FastAPI, settings: Settings) -> None:
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    logger.info("Rate limiter: %d req/min per IP", settings.rate_limit_per_minute)


app = create_app()
