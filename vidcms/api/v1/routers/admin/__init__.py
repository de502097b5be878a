from __future__ import annotations

"""
Admin router package (v1)
=========================

- videos: register, bulk import, list, patch
- maintenance: management-id repair (guarded by `X-Maintenance-Key`)

Mount with a base path in your app:
    app.include_router(admin.router, prefix="/api/v1/admin")
"""

from fastapi import APIRouter

from .videos import router as videos_router
from .maintenance import router as maintenance_router

router = APIRouter()  # callers mount with prefix="/api/v1/admin"
router.include_router(videos_router)
router.include_router(maintenance_router)

__all__ = ["router", "videos_router", "maintenance_router"]
