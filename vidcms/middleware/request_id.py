# vidcms/middleware/request_id.py
from __future__ import annotations

"""
# Video CMS — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a
  valid UUIDv4; otherwise generates one.
- Stores it on `request.state.request_id` and echoes it in the response.
- Binds `request_id` into the **loguru** context for the whole request, so
  allocation and repair logs can be correlated with the call that caused them.

## Env
- `REQUEST_ID_HEADER_NAME` (default: `X-Request-ID`)
- `REQUEST_ID_TRUST_CLIENT_IDS` ("true"/"false"; default: "true")
"""

import os
import uuid

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID")
TRUST_CLIENT_IDS = os.getenv("REQUEST_ID_TRUST_CLIENT_IDS", "true").lower() == "true"
MAX_ID_LENGTH = 64


def _valid_uuid4(candidate: str) -> bool:
    if not candidate or len(candidate) > MAX_ID_LENGTH:
        return False
    try:
        return uuid.UUID(candidate).version == 4
    except ValueError:
        return False


class RequestIDMiddleware:
    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = self._choose_request_id(Headers(scope=scope))
        scope.setdefault("state", {})["request_id"] = req_id
        name_bytes = self.header_name.lower().encode("latin-1")

        async def _send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers = [(k, v) for (k, v) in message.get("headers", []) if k.lower() != name_bytes]
                headers.append((name_bytes, req_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send_wrapper)

    def _choose_request_id(self, headers: Headers) -> str:
        if TRUST_CLIENT_IDS:
            incoming = (headers.get(self.header_name) or headers.get("X-Correlation-ID") or "").strip()
            if _valid_uuid4(incoming):
                return str(uuid.UUID(incoming))
        return str(uuid.uuid4())


def get_request_id(request) -> str:
    """Current request id from `request.state`, or "" outside a request."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
