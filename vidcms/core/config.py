# vidcms/core/config.py
from __future__ import annotations

"""
# Video CMS — Centralized Configuration (Pydantic v2)

Single `settings` object with strongly-typed, environment-driven config.

## Goals
- Safe defaults for local/dev: one embedded SQLite file, no secrets required.
- One source of truth for the management-id time zone and sequence width, so
  the allocator and the backfill repairer can never bucket differently.
- Bounded retry/timeout knobs for allocation under write contention.

## Usage
    from vidcms.core.config import settings
"""

from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # harmless in prod; convenient in dev


# ─────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────
def normalize_db_url(v: str | None) -> str:
    """Upgrade bare sqlite URLs to the async driver used by the app."""
    s = (v or "").strip()
    if s.startswith("sqlite:///"):
        return s.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if s.startswith("postgresql://"):
        return s.replace("postgresql://", "postgresql+asyncpg://", 1)
    return s


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────
class Settings(BaseSettings):
    """
    Global application settings sourced from environment.

    Management ids:
        - `MANAGEMENT_ID_TIMEZONE` decides the calendar day of a record; both
          live allocation and repair read it from here.
        - `MANAGEMENT_ID_SEQUENCE_WIDTH` is the minimum zero-padded width of
          the numeric suffix, shared by both paths.

    Notes:
        - `MAINTENANCE_KEY` unset means the maintenance endpoint is closed.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # don't crash on unknown keys
    )

    # ── App meta ──────────────────────────────────────────────
    PROJECT_NAME: str = "Video CMS API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENV: Literal["development", "staging", "production"] = "development"
    ENABLE_DOCS: bool = True

    # ── Database (embedded SQLite by default) ─────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/cms.db"
    SQLITE_BUSY_TIMEOUT_SECONDS: float = Field(5.0, gt=0, le=120)
    DB_ECHO: bool = False

    # ── Management ids ────────────────────────────────────────
    MANAGEMENT_ID_TIMEZONE: str = "Asia/Seoul"
    MANAGEMENT_ID_SEQUENCE_WIDTH: int = Field(3, ge=2, le=6)
    ALLOCATION_MAX_ATTEMPTS: int = Field(5, ge=1, le=50)
    ALLOCATION_RETRY_BACKOFF_MS: int = Field(25, ge=0, le=5000)

    # ── Videos API ────────────────────────────────────────────
    BULK_MAX_ITEMS: int = Field(100, ge=1, le=10_000)
    BULK_UPSERT_MAX_ITEMS: int = Field(20, ge=1, le=1_000)
    LIST_MAX_LIMIT: int = Field(500, ge=1, le=10_000)

    # ── Maintenance ───────────────────────────────────────────
    MAINTENANCE_KEY: Optional[SecretStr] = None

    # ─────────────────────────────────────────────────────────
    # Validators
    # ─────────────────────────────────────────────────────────
    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _v_database_url(cls, v: str | None) -> str:
        url = normalize_db_url(v)
        if not url:
            raise ValueError("DATABASE_URL must not be empty")
        return url

    @field_validator("MANAGEMENT_ID_TIMEZONE")
    @classmethod
    def _v_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {v!r}") from exc
        return v

    # ─────────────────────────────────────────────────────────
    # Convenience properties
    # ─────────────────────────────────────────────────────────
    @property
    def management_id_zone(self) -> ZoneInfo:
        """Resolved zone used to derive `YYMMDD` buckets."""
        return ZoneInfo(self.MANAGEMENT_ID_TIMEZONE)

    @property
    def maintenance_key(self) -> str:
        return self.MAINTENANCE_KEY.get_secret_value() if self.MAINTENANCE_KEY else ""


settings = Settings()

__all__ = ["Settings", "settings", "normalize_db_url"]
