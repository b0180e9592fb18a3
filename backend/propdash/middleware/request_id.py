# backend/propdash/middleware/request_id.py
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

# Caller-supplied ids end up in every log line; anything else is replaced.
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


def get_request_id() -> str | None:
    return request_id_ctx.get()


def _incoming_id(request: Request) -> str | None:
    rid = (request.headers.get("X-Request-ID") or request.headers.get("X-Request-Id") or "").strip()
    return rid if _SAFE_ID.match(rid) else None


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id and every response with the id and the
    metrics version the numbers were computed under.

    - Reuses a well-formed incoming X-Request-ID, otherwise generates a UUID4
    - Stores it in a ContextVar (read by JsonFormatter) and on request.state
    """

    header_out = "X-Request-ID"
    version_header = "X-Metrics-Version"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = _incoming_id(request) or str(uuid.uuid4())

        request.state.request_id = rid
        token = request_id_ctx.set(rid)
        try:
            resp = await call_next(request)
            resp.headers[self.header_out] = rid
            resp.headers[self.version_header] = settings.metrics_version
            return resp
        finally:
            request_id_ctx.reset(token)
