from __future__ import annotations

"""
🎬 Video CMS — Video
====================

One registered video. Each row carries a human-readable **management id**
(`YYMMDD-NNN`) allocated at creation time from the creation date in the
management time zone and a per-day sequence.

Design highlights
-----------------
• `management_id` is nullable: legacy rows may have none until repaired
• Uniqueness is per **partition** (`site_id`, NULL and "" being the same
  partition) and only over non-empty ids, via a partial unique index on
  `(coalesce(site_id, ''), management_id)`
• `batch_order` is an optional manual rank used by list ordering
• UTC timestamps from `TimestampMixin`
"""

from uuid import uuid4

from sqlalchemy import (
    Column,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    func,
    text,
)

from vidcms.db.base_class import Base, TimestampMixin
from vidcms.schemas.enums import VideoPlatform, Visibility

MANAGEMENT_ID_UNIQUE_INDEX = "uq_videos_site_management_id"


def _uuid_str() -> str:
    return str(uuid4())


# ──────────────────────────────────────────────────────────────
# 📦 Model: Video
# ──────────────────────────────────────────────────────────────
class Video(TimestampMixin, Base):
    """A registered video with its management id."""

    __tablename__ = "videos"

    # ── Identity ──────────────────────────────────────────────
    id = Column(String(36), primary_key=True, default=_uuid_str)
    management_id = Column(String(32), nullable=True, index=True)

    # ── Ownership / partition ────────────────────────────────
    site_id = Column(String(64), nullable=True, index=True)
    owner_id = Column(String(64), nullable=True)

    # ── Content ──────────────────────────────────────────────
    title = Column(String(255), nullable=True)
    platform = Column(
        SAEnum(VideoPlatform, name="video_platform", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=VideoPlatform.YOUTUBE,
    )
    source_url = Column(String(2048), nullable=False)
    visibility = Column(
        SAEnum(Visibility, name="video_visibility", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Visibility.PUBLIC,
    )
    language = Column(String(16), nullable=False, default="en")

    # Manual rank; lower sorts first in listings
    batch_order = Column(Integer, nullable=True)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Video id={self.id} management_id={self.management_id!r} site_id={self.site_id!r}>"


# Partial unique index over the partition key; declared after the class so
# it can reference the mapped columns.
Index(
    MANAGEMENT_ID_UNIQUE_INDEX,
    func.coalesce(Video.site_id, ""),
    Video.management_id,
    unique=True,
    sqlite_where=text("management_id IS NOT NULL AND management_id <> ''"),
    postgresql_where=text("management_id IS NOT NULL AND management_id <> ''"),
)


__all__ = ["Video", "MANAGEMENT_ID_UNIQUE_INDEX"]
