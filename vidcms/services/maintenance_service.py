# vidcms/services/maintenance_service.py
from __future__ import annotations

"""
Video CMS — Management-id Repair
================================

Backfills `management_id` on videos that were stored without one (legacy
imports, records created while allocation was failing).

Design notes
------------
- The whole run is **one exclusive transaction**: either every missing id
  is written or none is. Re-running after a failure is safe.
- Candidates are ordered by `created_at ASC, id ASC` so earlier videos get
  smaller sequence numbers within their day.
- Each (bucket, partition) counter is seeded lazily from the current store
  maximum and only moves forward; existing ids are never renumbered.
- Every candidate is re-checked against the store before it is written. A
  taken value is logged, counted and skipped.
- The UPDATE is conditional on the row still having no id, so a value that
  appeared concurrently is never overwritten.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vidcms.core.config import settings
from vidcms.core.exceptions import RepairFailedError
from vidcms.db.models.video import Video
from vidcms.db.session import begin_exclusive
from vidcms.services import allocation_service
from vidcms.services.allocation_service import partition_key
from vidcms.utils.management_id import as_utc, date_bucket, format_management_id

logger = logging.getLogger(__name__)

# Cap on consecutive taken values for one candidate
_MAX_COLLISION_SKIPS = 1000


@dataclass
class RepairResult:
    updated: int = 0
    skipped_collisions: int = 0
    buckets: Dict[str, int] = field(default_factory=dict)
    dry_run: bool = False

    def as_response(self) -> Dict[str, object]:
        return {"ok": True, "updated": self.updated}


def _missing_id_clause():
    """NULL, empty or all spaces (SQL `trim` strips spaces only)."""
    return or_(Video.management_id.is_(None), func.trim(Video.management_id) == "")


async def _is_taken(db: AsyncSession, management_id: str, site_id: Optional[str]) -> bool:
    stmt = (
        select(Video.id)
        .where(
            func.coalesce(Video.site_id, "") == partition_key(site_id),
            Video.management_id == management_id,
        )
        .limit(1)
    )
    return (await db.execute(stmt)).first() is not None


async def regenerate_management_ids(db: AsyncSession, *, dry_run: bool = False) -> RepairResult:
    """Assign ids to every video that has none; returns what was done.

    With `dry_run` the same work happens inside the transaction and is then
    rolled back.
    """
    result = RepairResult(dry_run=dry_run)
    zone = settings.management_id_zone
    width = settings.MANAGEMENT_ID_SEQUENCE_WIDTH

    try:
        await begin_exclusive(db, table=Video.__tablename__)

        rows = (
            await db.execute(
                select(Video.id, Video.site_id, Video.created_at)
                .where(_missing_id_clause())
                .order_by(Video.created_at.asc(), Video.id.asc())
            )
        ).all()

        counters: Dict[Tuple[str, str], int] = {}
        for video_id, site_id, created_at in rows:
            bucket = date_bucket(as_utc(created_at), zone)
            key = (bucket, partition_key(site_id))
            if key not in counters:
                current = await allocation_service.current_max_sequence(db, bucket=bucket, site_id=site_id)
                counters[key] = current + 1

            candidate = format_management_id(bucket, counters[key], width)
            skips = 0
            while await _is_taken(db, candidate, site_id):
                logger.warning("management_id %s already taken; skipping for video %s", candidate, video_id)
                result.skipped_collisions += 1
                skips += 1
                if skips >= _MAX_COLLISION_SKIPS:
                    raise RuntimeError(f"too many taken management ids in bucket {bucket}")
                counters[key] += 1
                candidate = format_management_id(bucket, counters[key], width)

            res = await db.execute(
                update(Video)
                .where(Video.id == video_id, _missing_id_clause())
                .values(management_id=candidate)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount:
                counters[key] += 1
                result.updated += 1
                result.buckets[bucket] = result.buckets.get(bucket, 0) + 1

        if dry_run:
            await db.rollback()
        else:
            await db.commit()
    except Exception as exc:
        await db.rollback()
        logger.exception("management_id repair rolled back")
        raise RepairFailedError(reason=exc.__class__.__name__) from exc

    logger.info(
        "management_id repair %s: updated=%d skipped_collisions=%d buckets=%s",
        "dry-run" if dry_run else "committed",
        result.updated,
        result.skipped_collisions,
        result.buckets,
    )
    return result


__all__ = ["RepairResult", "regenerate_management_ids"]
