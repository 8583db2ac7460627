"""
Health check response schemas.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class EngineLimits(BaseModel):
    max_items: int = Field(description="Maximum number of items per clustering request.")
    default_min_cluster_size: int
    default_max_cluster_size: int
    default_undersized_policy: Literal["fail", "drop"]


class HealthResponse(BaseModel):
    """Response body for GET /health and GET /v1/health"""

    status: Literal["ok"] = Field(
        description="Always `ok` once the process serves requests; the engine "
                    "has no external dependencies to degrade."
    )
    version: str = Field(description="Service version string.", examples=["1.0.0"])
    environment: str = Field(examples=["production"])
    uptime_seconds: float = Field(description="Seconds since the process started.")
    limits: EngineLimits = Field(description="Effective clustering limits and defaults.")
