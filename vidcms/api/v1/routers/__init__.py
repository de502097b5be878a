"""
Video CMS • API v1 Router Aggregator
====================================

Quick usage
-----------
    from vidcms.api.v1.routers import build_v1_router
    app.include_router(build_v1_router(), prefix="/api/v1")
"""

from fastapi import APIRouter

from .admin import router as admin_router


def build_v1_router() -> APIRouter:
    """Compose the v1 surface; admin endpoints live under `/admin`."""
    r = APIRouter()
    r.include_router(admin_router, prefix="/admin")
    return r


router = build_v1_router()

__all__ = ["router", "build_v1_router", "admin_router"]
