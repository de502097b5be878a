# vidcms/db/models/__init__.py
"""
Video CMS — ORM models
"""

from .video import Video, MANAGEMENT_ID_UNIQUE_INDEX

__all__ = ["Video", "MANAGEMENT_ID_UNIQUE_INDEX"]
