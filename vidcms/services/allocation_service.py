# vidcms/services/allocation_service.py
from __future__ import annotations

"""
Video CMS — Management-id Allocation Service
============================================

Assigns `YYMMDD-NNN` management ids to new videos.

Design notes
------------
- **One writer at a time**: every attempt opens its transaction with
  `begin_exclusive()` (SQLite `BEGIN IMMEDIATE`, PostgreSQL table lock), so
  the max lookup and the insert happen under the same write lock.
- **No counter cache**: each attempt re-reads the current maximum from the
  store; a process restart can never rewind a sequence.
- **Bounded retry**: a unique-index violation or a lock timeout rolls the
  attempt back and retries with a linear back-off. When attempts run out
  the caller gets `AllocationContentionError` (HTTP 503, retryable).
- **Numeric max**: sequences are compared as integers, so legacy 2-digit
  ids (`251227-09`) and 3-digit ones (`251227-010`) mix correctly.
- The bucket is the creation date in `settings.management_id_zone`. The
  creation time is read inside each attempt, so a retry that crosses
  midnight lands in the new day's bucket.

Usage
-----
    video = await create_video_with_management_id(
        db, values={"source_url": url, "platform": VideoPlatform.YOUTUBE}
    )
    video.management_id  # "251227-001"
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from vidcms.core.config import settings
from vidcms.core.exceptions import (
    AllocationContention,
    AllocationContentionError,
    DuplicateManagementIdError,
)
from vidcms.db.base_class import utcnow
from vidcms.db.models.video import MANAGEMENT_ID_UNIQUE_INDEX, Video
from vidcms.db.session import begin_exclusive
from vidcms.utils.management_id import as_utc, date_bucket, format_management_id, parse_sequence

logger = logging.getLogger(__name__)

_LOCK_MARKERS = ("database is locked", "database table is locked", "busy", "lock timeout")


# ─────────────────────────────────────────────────────────────
# 🔎 Error classification
# ─────────────────────────────────────────────────────────────
def _error_text(exc: Exception) -> str:
    return str(getattr(exc, "orig", None) or exc).lower()


def is_management_id_conflict(exc: IntegrityError) -> bool:
    """True when the violated constraint is the management-id unique index."""
    text = _error_text(exc)
    return MANAGEMENT_ID_UNIQUE_INDEX in text or "management_id" in text


def is_lock_timeout(exc: OperationalError) -> bool:
    text = _error_text(exc)
    return any(marker in text for marker in _LOCK_MARKERS)


def partition_key(site_id: Optional[str]) -> str:
    """NULL and "" site ids share one partition, like the unique index."""
    return site_id or ""


# ─────────────────────────────────────────────────────────────
# 🔢 Sequence lookup
# ─────────────────────────────────────────────────────────────
async def current_max_sequence(db: AsyncSession, *, bucket: str, site_id: Optional[str]) -> int:
    """Largest sequence used in `bucket` for the partition, 0 when none."""
    stmt = select(Video.management_id).where(
        func.coalesce(Video.site_id, "") == partition_key(site_id),
        Video.management_id.like(f"{bucket}-%"),
    )
    best = 0
    for management_id in (await db.execute(stmt)).scalars():
        seq = parse_sequence(management_id, bucket)
        if seq is not None and seq > best:
            best = seq
    return best


async def next_management_id(db: AsyncSession, *, created_at: datetime, site_id: Optional[str]) -> str:
    """Next free id for the bucket of `created_at`.

    Only meaningful on a session already holding the write lock.
    """
    bucket = date_bucket(created_at, settings.management_id_zone)
    seq = await current_max_sequence(db, bucket=bucket, site_id=site_id) + 1
    return format_management_id(bucket, seq, settings.MANAGEMENT_ID_SEQUENCE_WIDTH)


def _max_attempts() -> int:
    return max(1, settings.ALLOCATION_MAX_ATTEMPTS)


async def _backoff(attempt: int) -> None:
    await asyncio.sleep(settings.ALLOCATION_RETRY_BACKOFF_MS * attempt / 1000.0)


async def allocate(db: AsyncSession, *, now: Optional[datetime] = None, site_id: Optional[str] = None) -> str:
    """Lock the store and return the next id; the caller inserts and commits.

    A busy write lock is retried like `create_video_with_management_id`
    does. The returned id is reserved only for as long as the caller keeps
    the transaction this opens.
    """
    max_attempts = _max_attempts()
    for attempt in range(1, max_attempts + 1):
        try:
            await begin_exclusive(db, table=Video.__tablename__)
        except OperationalError as exc:
            await db.rollback()
            if not is_lock_timeout(exc):
                raise
            logger.warning("write lock busy (attempt %d/%d); retrying", attempt, max_attempts)
        else:
            return await next_management_id(db, created_at=as_utc(now) if now else utcnow(), site_id=site_id)

        if attempt < max_attempts:
            await _backoff(attempt)

    logger.error("management_id lock gave up after %d attempts", max_attempts)
    raise AllocationContentionError(attempts=max_attempts, reason="locked")


# ─────────────────────────────────────────────────────────────
# 🎬 Create with allocation
# ─────────────────────────────────────────────────────────────
async def _attempt_create(
    db: AsyncSession,
    values: Dict[str, Any],
    created_at: Optional[datetime],
) -> Video:
    try:
        await begin_exclusive(db, table=Video.__tablename__)
        moment = as_utc(created_at) if created_at else utcnow()
        management_id = await next_management_id(db, created_at=moment, site_id=values.get("site_id"))

        video = Video(**values, management_id=management_id, created_at=moment, updated_at=moment)
        db.add(video)
        try:
            await db.flush()
        except IntegrityError as exc:
            if is_management_id_conflict(exc):
                raise DuplicateManagementIdError(management_id) from exc
            raise
        await db.commit()
        return video
    except OperationalError as exc:
        await db.rollback()
        if is_lock_timeout(exc):
            raise AllocationContention(str(exc.orig or exc)) from exc
        raise
    except Exception:
        await db.rollback()
        raise


async def create_video_with_management_id(
    db: AsyncSession,
    *,
    values: Dict[str, Any],
    created_at: Optional[datetime] = None,
) -> Video:
    """Insert a video and its freshly allocated management id atomically.

    `values` are `Video` column values other than `management_id` and the
    timestamps. The session must not have an open transaction.
    """
    values = {k: v for k, v in values.items() if k not in {"management_id", "created_at", "updated_at"}}
    max_attempts = _max_attempts()
    reason = "contention"

    for attempt in range(1, max_attempts + 1):
        try:
            video = await _attempt_create(db, values, created_at)
        except DuplicateManagementIdError as exc:
            reason = "duplicate"
            logger.warning(
                "management_id %s already taken (attempt %d/%d); retrying",
                exc.management_id, attempt, max_attempts,
            )
        except AllocationContention:
            reason = "locked"
            logger.warning("write lock busy (attempt %d/%d); retrying", attempt, max_attempts)
        else:
            logger.info("allocated management_id %s for video %s", video.management_id, video.id)
            return video

        if attempt < max_attempts:
            await _backoff(attempt)

    logger.error("management_id allocation gave up after %d attempts (%s)", max_attempts, reason)
    raise AllocationContentionError(attempts=max_attempts, reason=reason)


__all__ = [
    "current_max_sequence",
    "next_management_id",
    "allocate",
    "create_video_with_management_id",
    "is_management_id_conflict",
    "is_lock_timeout",
    "partition_key",
]
