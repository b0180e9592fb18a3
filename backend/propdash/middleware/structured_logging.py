# backend/propdash/middleware/structured_logging.py
from __future__ import annotations

import json
import logging
import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("propdash.request")

METRICS_PATH = "/api/metrics/"
REJECTED_ROWS_HEADER = "X-Rejected-Rows"


def _engine_for(path: str) -> Optional[str]:
    """/api/metrics/tenant-risk -> "tenant_risk"; None outside the metrics API."""
    if not path.startswith(METRICS_PATH):
        return None
    tail = path[len(METRICS_PATH):].strip("/")
    return tail.replace("-", "_") or None


def _json_log(payload: dict, *, level: int = logging.INFO) -> None:
    try:
        line = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        line = str(payload)
    log.log(level, line)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One structured line per request:
      request_id, method, path, engine, status_code, rejected_rows, latency_ms

    Must sit inside RequestIdMiddleware so request.state.request_id is set.
    5xx responses are logged at ERROR, rejected snapshot rows at WARNING.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()

        status_code = 500
        rejected = 0
        try:
            response = await call_next(request)
            status_code = response.status_code
            rejected = int(response.headers.get(REJECTED_ROWS_HEADER) or 0)
            return response
        finally:
            latency_ms = int((time.perf_counter() - t0) * 1000)
            request_id: Optional[str] = getattr(request.state, "request_id", None)

            level = logging.INFO
            if status_code >= 500:
                level = logging.ERROR
            elif rejected:
                level = logging.WARNING

            _json_log(
                {
                    "event": "http_request",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "engine": _engine_for(request.url.path),
                    "status_code": status_code,
                    "rejected_rows": rejected,
                    "latency_ms": latency_ms,
                },
                level=level,
            )
