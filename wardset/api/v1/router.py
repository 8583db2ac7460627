"""
Aggregate all v1 endpoint routers under the /v1 prefix.
"""

from fastapi import APIRouter

from wardset.api.v1.endpoints.cluster import router as cluster_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(cluster_router)
