from __future__ import annotations

"""
Maintenance guard
-----------------
Maintenance endpoints are not behind user auth; they require the shared
`X-Maintenance-Key` header to match `settings.MAINTENANCE_KEY`. When no key
is configured every call is refused.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from vidcms.core.config import settings
from vidcms.core.exceptions import MaintenanceKeyError

logger = logging.getLogger(__name__)


async def require_maintenance_key(
    x_maintenance_key: Optional[str] = Header(None, alias="X-Maintenance-Key"),
) -> None:
    expected = settings.maintenance_key
    if not expected:
        logger.warning("maintenance call refused: MAINTENANCE_KEY is not configured")
        raise MaintenanceKeyError(message="Maintenance key not configured")
    if not x_maintenance_key or not hmac.compare_digest(x_maintenance_key.encode(), expected.encode()):
        logger.warning("maintenance call refused: bad or missing X-Maintenance-Key")
        raise MaintenanceKeyError()


__all__ = ["require_maintenance_key"]
