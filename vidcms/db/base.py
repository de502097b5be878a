# vidcms/db/base.py
"""
Video CMS — SQLAlchemy Base registry
====================================

Import all ORM models so their tables are registered on `Base.metadata`.
Alembic and the test fixtures read `Base.metadata` from here.

Tip: Keep this file import-only; no runtime logic.
"""

from vidcms.db.base_class import Base

from vidcms.db.models.video import Video

__all__ = [
    "Base",
    "Video",
]
