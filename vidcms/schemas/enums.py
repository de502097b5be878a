from __future__ import annotations

"""
Central enum definitions used across the Video CMS.

Design notes
------------
• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (stored as plain strings).
"""

from enum import Enum as PyEnum


# ──────────────────────────────────────────────────────────────
# Videos
# ──────────────────────────────────────────────────────────────
class VideoPlatform(str, PyEnum):
    """Where the source video is hosted."""
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    OTHER = "other"


class Visibility(str, PyEnum):
    """Who can see a video in listings."""
    PUBLIC = "public"
    PRIVATE = "private"


__all__ = ["VideoPlatform", "Visibility"]
