# tests/utils/factory.py

from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vidcms.db.models.video import Video
from vidcms.schemas.enums import VideoPlatform, Visibility

# 2025-12-27 12:00 in Asia/Seoul
NOON_KST = datetime(2025, 12, 27, 3, 0, tzinfo=timezone.utc)


async def add_video(
    factory: async_sessionmaker[AsyncSession],
    *,
    management_id: Optional[str] = None,
    site_id: Optional[str] = None,
    created_at: datetime = NOON_KST,
    **kwargs,
) -> str:
    """
    ✅ Insert a video row directly, bypassing allocation (legacy/failed rows).

    Returns:
        str: the new row's id.
    """
    video_id = str(uuid4())
    async with factory() as session:
        session.add(
            Video(
                id=video_id,
                management_id=management_id,
                site_id=site_id,
                source_url=kwargs.pop("source_url", f"https://www.youtube.com/watch?v={video_id[:8]}"),
                platform=kwargs.pop("platform", VideoPlatform.YOUTUBE),
                visibility=kwargs.pop("visibility", Visibility.PUBLIC),
                created_at=created_at,
                updated_at=created_at,
                **kwargs,
            )
        )
        await session.commit()
    return video_id


async def management_ids(factory: async_sessionmaker[AsyncSession]) -> Dict[str, Optional[str]]:
    """Map of video id → management id, read in a fresh session."""
    async with factory() as session:
        rows = (await session.execute(select(Video.id, Video.management_id))).all()
    return {vid: mid for vid, mid in rows}


async def all_management_ids(factory: async_sessionmaker[AsyncSession]) -> List[str]:
    return sorted(mid for mid in (await management_ids(factory)).values() if mid)
