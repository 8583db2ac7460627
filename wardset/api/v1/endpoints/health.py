"""
Health check endpoints.

GET /health     root-level health (no auth required, used by Docker/k8s probes)
GET /v1/health  versioned alias
"""

from __future__ import annotations

import time

from fastapi import APIRouter

from wardset.core.config import get_settings
from wardset.schemas.health import EngineLimits, HealthResponse

router = APIRouter(tags=["Health"])

# Recorded at import time, a rough approximation of process start.
_START_TIME = time.time()


def _build_health_response() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        environment=settings.environment,
        uptime_seconds=round(time.time() - _START_TIME, 1),
        limits=EngineLimits(
            max_items=settings.max_items,
            default_min_cluster_size=settings.default_min_cluster_size,
            default_max_cluster_size=settings.default_max_cluster_size,
            default_undersized_policy=settings.default_undersized_policy,
        ),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the service status and the effective clustering limits. "
        "Does not require authentication. Suitable for Docker HEALTHCHECK and "
        "Kubernetes liveness/readiness probes."
    ),
)
async def health_root() -> HealthResponse:
    return _build_health_response()


@router.get(
    "/v1/health",
    response_model=HealthResponse,
    summary="Service health check (versioned alias)",
)
async def health_v1() -> HealthResponse:
    return _build_health_response()
