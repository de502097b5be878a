from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

`vidcms.main.create_app` installs these. All HTTP errors are rendered as
application/problem+json with a stable schema; `AppException` subclasses add
their `to_problem()` fields (e.g. `retryable`, `ok`, `updated`).
"""

import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidcms.core.exceptions import AppException

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> str:
    return getattr(getattr(request, "state", object()), "request_id", "") or "N/A"


def _problem(title: str, detail: str, status_code: int, request: Request, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "type": "about:blank",
            "title": title,
            "detail": detail,
            "status": status_code,
            "instance": str(request.url),
        },
        media_type="application/problem+json",
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    content = {
        "type": "about:blank",
        "title": exc.__class__.__name__.replace("Error", "").replace("Exception", "").strip() or "Error",
        "detail": exc.message,
        "status": exc.status_code,
        "instance": str(request.url),
    }
    content.update(exc.to_problem(fallback_request_id=_request_id(request)))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        media_type="application/problem+json",
        headers=getattr(exc, "headers", None),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _problem(title, detail, exc.status_code, request, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    detail = "Validation error"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "type": "about:blank",
            "title": detail,
            "detail": detail,
            "status": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "instance": str(request.url),
            "errors": jsonable_encoder(exc.errors()),
        },
        media_type="application/problem+json",
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals from the client; keep the traceback in the logs.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _problem("Internal Server Error", "An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
