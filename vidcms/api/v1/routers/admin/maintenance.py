from __future__ import annotations

# ─────────────────────────────────────────────────────────────────────────────
# 🛠️ Admin · Maintenance Router
# ─────────────────────────────────────────────────────────────────────────────

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidcms.db.session import get_async_db
from vidcms.dependencies.maintenance import require_maintenance_key
from vidcms.schemas.videos import RegenerateOut
from vidcms.security_headers import set_sensitive_cache
from vidcms.services.maintenance_service import regenerate_management_ids

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/maintenance",
    tags=["Admin · Maintenance"],
    dependencies=[Depends(require_maintenance_key)],
)


@router.post(
    "/regenerate-management-ids",
    summary="Backfill missing management ids",
    response_model=RegenerateOut,
    status_code=status.HTTP_200_OK,
    responses={
        401: {"description": "Missing, wrong or unconfigured X-Maintenance-Key"},
        500: {"description": "Repair rolled back; nothing was written"},
    },
)
async def regenerate_management_ids_endpoint(
    response: Response,
    dry_run: bool = Query(False, description="Compute the assignment, then roll it back"),
    db: AsyncSession = Depends(get_async_db),
) -> RegenerateOut:
    set_sensitive_cache(response)
    result = await regenerate_management_ids(db, dry_run=dry_run)
    return RegenerateOut(**result.as_response())


__all__ = ["router"]
