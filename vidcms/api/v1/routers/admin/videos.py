from __future__ import annotations

# ─────────────────────────────────────────────────────────────────────────────
# 🎬 Admin · Videos Router
# ─────────────────────────────────────────────────────────────────────────────

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from vidcms.core.config import settings
from vidcms.db.session import get_async_db
from vidcms.schemas.videos import (
    BulkCreateOut,
    BulkUpsertIn,
    BulkUpsertOut,
    BulkVideosIn,
    VideoCreateIn,
    VideoOut,
    VideoPatchIn,
)
from vidcms.security_headers import set_sensitive_cache
from vidcms.services import video_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin · Videos"])

_ALLOCATION_RESPONSES = {
    503: {"description": "Management id allocation contended; retry after `Retry-After` seconds"},
}


# ─────────────────────────────────────────────────────────────────────────────
# ➕ Create
# ─────────────────────────────────────────────────────────────────────────────

@router.post(
    "/videos",
    summary="Register a video (allocates its management id)",
    response_model=VideoOut,
    status_code=status.HTTP_200_OK,
    responses=_ALLOCATION_RESPONSES,
)
async def create_video(
    payload: VideoCreateIn,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> VideoOut:
    set_sensitive_cache(response)
    video = await video_service.create_video(db, payload)
    return VideoOut.model_validate(video)


@router.post(
    "/videos/bulk",
    summary="Register many videos in input order",
    response_model=BulkCreateOut,
    status_code=status.HTTP_200_OK,
)
async def bulk_create_videos(
    payload: BulkVideosIn,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> BulkCreateOut:
    set_sensitive_cache(response)
    result = await video_service.bulk_create_videos(
        db,
        payload.items,
        owner_id=payload.owner_id,
        site_id=payload.site_id,
    )
    return BulkCreateOut(
        success=result.success,
        failed=result.failed,
        results=[VideoOut.model_validate(v) for v in result.results],
        errors=result.errors,
    )


@router.post(
    "/videos/bulk/upsert",
    summary="Create, update or delete many videos in one request",
    response_model=BulkUpsertOut,
    status_code=status.HTTP_200_OK,
    responses=_ALLOCATION_RESPONSES,
)
async def bulk_upsert_videos(
    payload: BulkUpsertIn,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> BulkUpsertOut:
    set_sensitive_cache(response)
    result = await video_service.bulk_upsert_videos(
        db,
        payload.items,
        owner_id=payload.owner_id,
        site_id=payload.site_id,
    )
    return BulkUpsertOut(
        created=result.created,
        updated=result.updated,
        deleted=result.deleted,
        failed=result.failed,
        results=[VideoOut.model_validate(v) for v in result.results],
        errors=result.errors,
    )


# ─────────────────────────────────────────────────────────────────────────────
# 📜 List
# ─────────────────────────────────────────────────────────────────────────────

@router.get(
    "/videos",
    summary="List videos in display order",
    response_model=List[VideoOut],
)
async def list_videos(
    response: Response,
    site_id: Optional[str] = Query(None, max_length=64),
    limit: int = Query(100, ge=1, le=settings.LIST_MAX_LIMIT),
    db: AsyncSession = Depends(get_async_db),
) -> List[VideoOut]:
    set_sensitive_cache(response)
    videos = await video_service.list_videos(db, site_id=site_id, limit=limit)
    return [VideoOut.model_validate(v) for v in videos]


# ─────────────────────────────────────────────────────────────────────────────
# ✏️ Patch
# ─────────────────────────────────────────────────────────────────────────────

@router.patch(
    "/videos/{video_id}",
    summary="Update title, visibility, language or manual rank",
    response_model=VideoOut,
    responses={404: {"description": "Video not found"}},
)
async def patch_video(
    payload: VideoPatchIn,
    response: Response,
    video_id: str = Path(..., max_length=36),
    db: AsyncSession = Depends(get_async_db),
) -> VideoOut:
    set_sensitive_cache(response)
    video = await video_service.update_video(db, video_id, payload)
    return VideoOut.model_validate(video)


# ─────────────────────────────────────────────────────────────────────────────
# 🗑️ Delete
# ─────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/videos/{video_id}",
    summary="Hard delete a video",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"description": "Video not found"}},
)
async def delete_video(
    video_id: str = Path(..., max_length=36),
    db: AsyncSession = Depends(get_async_db),
) -> Response:
    """Other videos keep their management ids; nothing is renumbered."""
    await video_service.delete_video(db, video_id)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    set_sensitive_cache(response)
    return response


__all__ = ["router"]
