from __future__ import annotations

"""
Video CMS • Video Schemas
=========================

Request/response models for the admin video endpoints.

- `management_id`, `created_at` and `site_id` are read-only after creation;
  `VideoPatchIn` forbids unknown fields so a patch can't smuggle them in.
- Bulk items may have a blank `source_url`; those rows are skipped, not
  rejected.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vidcms.core.config import settings
from vidcms.schemas.enums import VideoPlatform, Visibility


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# === Inputs ================================================================

class VideoCreateIn(BaseModel):
    """Input for registering one video."""
    source_url: str = Field(..., max_length=2048, description="Source video URL")
    title: Optional[str] = Field(None, max_length=255)
    platform: VideoPlatform = VideoPlatform.YOUTUBE
    visibility: Visibility = Visibility.PUBLIC
    language: str = Field("en", max_length=16)
    site_id: Optional[str] = Field(None, max_length=64, description="Partition (tenant/site)")
    owner_id: Optional[str] = Field(None, max_length=64)
    batch_order: Optional[int] = Field(None, description="Manual rank; lower sorts first")

    @field_validator("source_url")
    @classmethod
    def _require_source_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("source_url must not be blank")
        return v

    @field_validator("title", "site_id", "owner_id")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class BulkVideoItem(BaseModel):
    """One row of a bulk import. Rows without a `source_url` are skipped."""
    source_url: Optional[str] = Field(None, max_length=2048)
    title: Optional[str] = Field(None, max_length=255)
    platform: VideoPlatform = VideoPlatform.YOUTUBE
    visibility: Visibility = Visibility.PUBLIC
    language: str = Field("en", max_length=16)
    batch_order: Optional[int] = None

    @field_validator("source_url", "title")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _strip_or_none(v)


class BulkVideosIn(BaseModel):
    items: List[BulkVideoItem]
    site_id: Optional[str] = Field(None, max_length=64)
    owner_id: Optional[str] = Field(None, max_length=64)

    @field_validator("items")
    @classmethod
    def _cap_items(cls, v: List[BulkVideoItem]) -> List[BulkVideoItem]:
        if len(v) > settings.BULK_MAX_ITEMS:
            raise ValueError(f"at most {settings.BULK_MAX_ITEMS} items per request")
        return v


class VideoPatchIn(BaseModel):
    """Safe-field update. Identity and timestamps are not patchable."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, max_length=255)
    visibility: Optional[Visibility] = None
    language: Optional[str] = Field(None, max_length=16)
    batch_order: Optional[int] = None

    @field_validator("visibility", "language")
    @classmethod
    def _not_null(cls, v):
        # Omit the field to leave it unchanged; the columns are NOT NULL.
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class BulkUpsertItem(BulkVideoItem):
    """One row of a bulk upsert.

    - no `id`: create (same rules as a bulk import row, `source_url` required)
    - `id`: update the safe fields that are set
    - `id` + `delete: true`: delete
    """
    id: Optional[str] = Field(None, max_length=36)
    delete: bool = False


class BulkUpsertIn(BaseModel):
    items: List[BulkUpsertItem] = Field(..., min_length=1)
    site_id: Optional[str] = Field(None, max_length=64)
    owner_id: Optional[str] = Field(None, max_length=64)

    @field_validator("items")
    @classmethod
    def _cap_items(cls, v: List[BulkUpsertItem]) -> List[BulkUpsertItem]:
        if len(v) > settings.BULK_UPSERT_MAX_ITEMS:
            raise ValueError(f"at most {settings.BULK_UPSERT_MAX_ITEMS} items per request")
        return v


# === Outputs ===============================================================

class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    management_id: Optional[str] = None
    site_id: Optional[str] = None
    owner_id: Optional[str] = None
    title: Optional[str] = None
    platform: VideoPlatform
    source_url: str
    visibility: Visibility
    language: str
    batch_order: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class BulkItemError(BaseModel):
    index: int
    error: str


class BulkCreateOut(BaseModel):
    success: int
    failed: int
    results: List[VideoOut]
    errors: List[BulkItemError]


class BulkUpsertError(BaseModel):
    index: int
    id: Optional[str] = None
    action: str
    error: str


class BulkUpsertOut(BaseModel):
    created: int
    updated: int
    deleted: int
    failed: int
    results: List[VideoOut]
    errors: List[BulkUpsertError]


class RegenerateOut(BaseModel):
    ok: bool
    updated: int


__all__ = [
    "VideoCreateIn",
    "BulkVideoItem",
    "BulkVideosIn",
    "BulkUpsertItem",
    "BulkUpsertIn",
    "VideoPatchIn",
    "VideoOut",
    "BulkItemError",
    "BulkCreateOut",
    "BulkUpsertError",
    "BulkUpsertOut",
    "RegenerateOut",
]
