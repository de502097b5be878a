# vidcms/security_headers.py
from __future__ import annotations

"""
Cache hardening for admin responses.

Admin payloads (video lists, repair results) must never be stored by
browsers or shared proxies.

    @router.get("/videos")
    async def list_videos(response: Response):
        set_sensitive_cache(response)
"""

from fastapi import Response


def set_sensitive_cache(response: Response, *, seconds: int = 0) -> None:
    """Mark `response` as non-cacheable (or privately cacheable for `seconds`)."""
    if seconds <= 0:
        response.headers["Cache-Control"] = "no-store"
        response.headers.setdefault("Pragma", "no-cache")
        response.headers.setdefault("Expires", "0")
        return
    response.headers["Cache-Control"] = f"private, max-age={seconds}"
    response.headers.setdefault("Vary", "X-Maintenance-Key")


__all__ = ["set_sensitive_cache"]
