# vidcms/db/base_class.py
from __future__ import annotations

"""
# Video CMS — SQLAlchemy Base & Mixins

SQLAlchemy 2.0 declarative **Base** with:
- Global **naming conventions** (Alembic-friendly, stable constraint names)
- Automatic **snake_case `__tablename__`** (models may override)
- Helpful `__repr__` for debugging/logs
- `TimestampMixin`: `created_at` / `updated_at` stored as UTC

Usage:
    from vidcms.db.base_class import Base, TimestampMixin

    class Video(TimestampMixin, Base):
        __tablename__ = "videos"
        ...

Notes:
- SQLite keeps no offset for `DateTime(timezone=True)`; values are always
  written in UTC and naive values read back are interpreted as UTC
  (see `vidcms.utils.management_id.as_utc`).
"""

from datetime import datetime, timezone
import re

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

# ──────────────────────────────────────────────────────────────────────────────
# 🏷️ Naming conventions (stable constraint names for Alembic)
# ──────────────────────────────────────────────────────────────────────────────

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _to_snake(name: str) -> str:
    """Convert `CamelCase` / `PascalCase` to `snake_case` for table names."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ──────────────────────────────────────────────────────────────────────────────
# 🧱 Declarative Base
# ──────────────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    """Global declarative base for Video CMS models."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return _to_snake(cls.__name__)

    def __repr__(self) -> str:  # pragma: no cover (repr convenience)
        attrs: list[str] = []
        for key in ("id", "management_id", "site_id"):
            if key in self.__dict__:
                attrs.append(f"{key}={self.__dict__[key]!r}")
        return f"{self.__class__.__name__}({', '.join(attrs)})"


# ──────────────────────────────────────────────────────────────────────────────
# 🧩 Common mixins
# ──────────────────────────────────────────────────────────────────────────────

class TimestampMixin:
    """
    Application-side UTC timestamps.
    - `created_at`: set once at insert (callers may pass an explicit value)
    - `updated_at`: set at insert and refreshed on change
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


__all__ = [
    "Base",
    "TimestampMixin",
    "NAMING_CONVENTION",
    "utcnow",
]
