# vidcms/services/video_service.py
from __future__ import annotations

"""
Video CMS — Video Service
=========================

Create, bulk-create, bulk-upsert, list, patch and delete videos. Creation
always goes through `create_video_with_management_id`, so every new row
gets its id in the same transaction as the insert.

Bulk imports
------------
- Rows with a blank `source_url` are skipped.
- Rows are created **sequentially**, one allocation transaction each, so
  management ids follow input order.
- A row without `batch_order` gets its 1-based position in the request.
- A failing row is recorded in `errors` and does not stop the batch.

Bulk upserts
------------
Same per-row rules; each row is a create (no `id`), an update (`id`) or a
delete (`id` + `delete`). Deleting a video never renumbers the others, and
the next allocation still continues from the bucket's remaining maximum.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from vidcms.core.config import settings
from vidcms.core.exceptions import AppException, VideoNotFoundError
from vidcms.db.models.video import Video
from vidcms.schemas.videos import BulkUpsertItem, BulkVideoItem, VideoCreateIn, VideoPatchIn
from vidcms.services.allocation_service import create_video_with_management_id
from vidcms.services.video_ordering import order_videos

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("title", "visibility", "language", "batch_order")


@dataclass
class BulkCreateResult:
    success: int = 0
    failed: int = 0
    results: List[Video] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class BulkUpsertResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failed: int = 0
    results: List[Video] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, AppException):
        return exc.message
    return str(exc) or exc.__class__.__name__


async def create_video(db: AsyncSession, payload: VideoCreateIn, *, owner_id: Optional[str] = None) -> Video:
    values = payload.model_dump()
    if owner_id is not None:
        values["owner_id"] = owner_id
    return await create_video_with_management_id(db, values=values)


async def _create_row(
    db: AsyncSession,
    index: int,
    item: BulkVideoItem,
    *,
    owner_id: Optional[str],
    site_id: Optional[str],
) -> Video:
    values = item.model_dump(exclude={"id", "delete"})
    values["site_id"] = site_id
    values["owner_id"] = owner_id
    if values.get("batch_order") is None:
        values["batch_order"] = index + 1
    return await create_video_with_management_id(db, values=values)


async def bulk_create_videos(
    db: AsyncSession,
    items: List[BulkVideoItem],
    *,
    owner_id: Optional[str] = None,
    site_id: Optional[str] = None,
) -> BulkCreateResult:
    result = BulkCreateResult()
    pending = [(index, item) for index, item in enumerate(items) if item.source_url]
    logger.debug("bulk create: %d of %d rows have a source_url", len(pending), len(items))

    for index, item in pending:
        try:
            video = await _create_row(db, index, item, owner_id=owner_id, site_id=site_id)
        except AppException as exc:
            result.failed += 1
            result.errors.append({"index": index, "error": exc.message})
            logger.warning("bulk create: row %d failed: %s", index, exc.message)
        except Exception as exc:
            result.failed += 1
            result.errors.append({"index": index, "error": _error_message(exc)})
            logger.exception("bulk create: row %d failed", index)
        else:
            # detached, so a later row's rollback cannot expire it
            db.expunge(video)
            result.success += 1
            result.results.append(video)

    logger.info("bulk create done: success=%d failed=%d", result.success, result.failed)
    return result


def _upsert_action(item: BulkUpsertItem) -> str:
    if item.delete:
        return "delete"
    return "update" if item.id else "create"


async def _upsert_row(
    db: AsyncSession,
    index: int,
    item: BulkUpsertItem,
    *,
    owner_id: Optional[str],
    site_id: Optional[str],
) -> Optional[Video]:
    action = _upsert_action(item)
    if action == "delete":
        if not item.id:
            raise ValueError("id is required to delete")
        await delete_video(db, item.id)
        return None
    if action == "update":
        changes = {
            name: value
            for name, value in item.model_dump(exclude_unset=True).items()
            if name in PATCHABLE_FIELDS and value is not None
        }
        video = await update_video(db, item.id, VideoPatchIn(**changes))
        # refresh() reopened a transaction; a later create needs a fresh one
        await db.commit()
        return video
    if not item.source_url:
        raise ValueError("source_url is required to create")
    return await _create_row(db, index, item, owner_id=owner_id, site_id=site_id)


async def bulk_upsert_videos(
    db: AsyncSession,
    items: List[BulkUpsertItem],
    *,
    owner_id: Optional[str] = None,
    site_id: Optional[str] = None,
) -> BulkUpsertResult:
    """Create, update or delete each row in input order.

    Rows are independent: one row failing is recorded in `errors` and the
    rest still run.
    """
    result = BulkUpsertResult()

    for index, item in enumerate(items):
        action = _upsert_action(item)
        try:
            video = await _upsert_row(db, index, item, owner_id=owner_id, site_id=site_id)
        except Exception as exc:
            if db.in_transaction():
                await db.rollback()
            result.failed += 1
            result.errors.append({"index": index, "id": item.id, "action": action, "error": _error_message(exc)})
            if isinstance(exc, (AppException, ValueError)):
                logger.warning("bulk upsert: row %d (%s) failed: %s", index, action, _error_message(exc))
            else:
                logger.exception("bulk upsert: row %d (%s) failed", index, action)
            continue

        if video is not None:
            db.expunge(video)
        if action == "delete":
            result.deleted += 1
        elif action == "update":
            result.updated += 1
            result.results.append(video)
        else:
            result.created += 1
            result.results.append(video)

    logger.info(
        "bulk upsert done: created=%d updated=%d deleted=%d failed=%d",
        result.created, result.updated, result.deleted, result.failed,
    )
    return result


async def list_videos(
    db: AsyncSession,
    *,
    site_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Video]:
    """Videos of a partition in display order.

    `limit` caps how many of the most recently created rows are considered
    before ordering.
    """
    limit = min(limit or settings.LIST_MAX_LIMIT, settings.LIST_MAX_LIMIT)
    stmt = select(Video)
    if site_id is not None:
        stmt = stmt.where(func.coalesce(Video.site_id, "") == site_id)
    stmt = stmt.order_by(Video.created_at.desc(), Video.id.asc()).limit(limit)
    rows = (await db.execute(stmt)).scalars().all()
    return order_videos(rows)


async def get_video(db: AsyncSession, video_id: str) -> Video:
    video = await db.get(Video, video_id)
    if video is None:
        raise VideoNotFoundError(video_id)
    return video


async def update_video(db: AsyncSession, video_id: str, patch: VideoPatchIn) -> Video:
    video = await get_video(db, video_id)
    changes = patch.model_dump(exclude_unset=True)
    for name in PATCHABLE_FIELDS:
        if name in changes:
            setattr(video, name, changes[name])
    await db.commit()
    await db.refresh(video)
    return video


async def delete_video(db: AsyncSession, video_id: str) -> None:
    """Hard-delete one video. Other rows keep their management ids."""
    video = await get_video(db, video_id)
    management_id = video.management_id
    await db.delete(video)
    await db.commit()
    logger.info("deleted video %s (management_id=%s)", video_id, management_id)


__all__ = [
    "BulkCreateResult",
    "BulkUpsertResult",
    "PATCHABLE_FIELDS",
    "create_video",
    "bulk_create_videos",
    "bulk_upsert_videos",
    "list_videos",
    "get_video",
    "update_video",
    "delete_video",
]
