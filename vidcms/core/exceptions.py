# vidcms/core/exceptions.py
from __future__ import annotations

"""
Video CMS — Application Exceptions
==================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and integrate cleanly with the JSON error
shape from `vidcms.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `details`, `extra`.
- Domain exceptions inherit from it and set sane defaults.
- `to_problem()` renders the canonical body used by the handlers.
- Internal signals that never reach a client (`DuplicateManagementIdError`,
  `AllocationContention`) are plain exceptions handled inside the allocator.

Usage
-----
    raise AllocationContentionError(attempts=5)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "AllocationContentionError",
    "AllocationContention",
    "DuplicateManagementIdError",
    "MaintenanceKeyError",
    "RepairFailedError",
    "VideoNotFoundError",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/404/409/500/503).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id.
    details : dict | list | str | None
        Machine-readable details (ids, attempts, constraints).
    extra : dict | None
        Additional non-sensitive fields merged into the problem body.
    headers : dict | None
        Optional headers (e.g., `{"Retry-After": "1"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def to_problem(self, *, fallback_request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return a dict matching our problem-like JSON shape."""
        body: Dict[str, Any] = {
            "error": True,
            "message": self.message,
            "code": self.code,
            "request_id": self.request_id or fallback_request_id or "N/A",
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret", "key"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 🔢 Management-id allocation
# ──────────────────────────────────────────────────────────────
class AllocationContention(Exception):
    """The write lock for an allocation attempt could not be taken in time."""


class DuplicateManagementIdError(Exception):
    """The store rejected an id that the allocator believed was free.

    Treated as a race, not a user error: the allocator retries, which re-reads
    the now-updated maximum.
    """

    def __init__(self, management_id: str) -> None:
        super().__init__(f"management_id {management_id!r} already taken")
        self.management_id = management_id


class AllocationContentionError(AppException):
    """Creation failed because no management id could be allocated in time (retryable)."""

    def __init__(self, *, attempts: int, retry_after_seconds: int = 1, reason: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message="Could not allocate a management id; please retry",
            details={"attempts": attempts, "reason": reason or "contention"},
            extra={"retryable": True},
            headers={"Retry-After": str(retry_after_seconds)},
        )
        self.attempts = attempts


# ──────────────────────────────────────────────────────────────
# 🛠️ Maintenance
# ──────────────────────────────────────────────────────────────
class MaintenanceKeyError(AppException):
    """Missing, wrong, or unconfigured `X-Maintenance-Key`."""

    def __init__(self, *, message: str = "Invalid maintenance key") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, message=message)


class RepairFailedError(AppException):
    """A repair run was rolled back; nothing was written."""

    def __init__(self, *, reason: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Management id regeneration failed",
            details={"reason": reason} if reason else None,
            extra={"ok": False, "updated": 0},
        )


# ──────────────────────────────────────────────────────────────
# 🎬 Videos
# ──────────────────────────────────────────────────────────────
class VideoNotFoundError(AppException):
    def __init__(self, video_id: str) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            message="Video not found",
            details={"id": video_id},
        )
