# vidcms/main.py
from __future__ import annotations

"""
# Video CMS API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the Video CMS backend.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Middleware order: request id → gzip → strip `Server` header.
- Problem+JSON exception handlers for app, HTTP, validation and uncaught errors.

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (`SELECT 1` against the database).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from vidcms.core import logger as _logsetup  # noqa: F401

from vidcms.api.v1.routers import build_v1_router
from vidcms.core.config import settings
from vidcms.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from vidcms.core.exceptions import AppException
from vidcms.db.session import async_engine, db_healthcheck
from vidcms.middleware.request_id import RequestIDMiddleware

logger = logging.getLogger("vidcms")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "✅ %s starting (db=%s, management-id zone=%s)",
        settings.PROJECT_NAME,
        async_engine.url.render_as_string(hide_password=True),
        settings.MANAGEMENT_ID_TIMEZONE,
    )
    try:
        yield
    finally:
        await async_engine.dispose()
        logger.info("🛑 Database engine disposed")


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: application with middleware, exception handlers, the v1
        routers and health/readiness endpoints.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    install_exception_handlers(app)

    # ── Routers (versioned API) ─────────────────────────────────────────────
    app.include_router(build_v1_router(), prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    async def healthz() -> dict[str, bool]:
        """Liveness probe; no external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    async def readyz() -> JSONResponse:
        """Readiness probe: 200 when the database answers, 503 otherwise."""
        db_ok = await db_healthcheck()
        return JSONResponse(
            {"ready": db_ok, "checks": {"db": db_ok}},
            status_code=200 if db_ok else 503,
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "install_exception_handlers", "app"]


# Local dev runner (prefer: `uvicorn vidcms.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("vidcms.main:app", host="127.0.0.1", port=8000, reload=False)
