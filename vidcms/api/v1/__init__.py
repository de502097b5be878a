"""Versioned API (v1).

Import the aggregated router from the subpackage:

    from vidcms.api.v1.routers import build_v1_router
"""

__all__ = []
