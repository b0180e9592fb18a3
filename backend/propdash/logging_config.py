# backend/propdash/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from .middleware.request_id import get_request_id

# Extras the engines attach via `extra=` (see domain.grouping, maintenance_sla).
STRUCTURED_EXTRAS = ("engine", "tenant_id", "payment_id", "request_pk", "staff_id", "record_kind", "count")


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: getattr(record, k) for k in STRUCTURED_EXTRAS if hasattr(record, k)}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: ts, level, logger, message, request_id (inside an
    HTTP request), exc_info, plus any engine extras present on the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id()
        if rid:
            payload["request_id"] = rid

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        payload.update(_extras(record))
        return json.dumps(payload, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable variant for terminal use of the CLI (LOG_FORMAT=plain)."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def configure_logging(stream: Optional[TextIO] = None) -> None:
    """
    LOG_LEVEL sets the root level, ENGINE_LOG_LEVEL overrides it for the
    propdash.* loggers (DEBUG shows per-run counts), LOG_FORMAT=json|plain.
    """
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()
    fmt = (os.getenv("LOG_FORMAT") or "json").strip().lower()

    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers (uvicorn reload, repeated create_app() in tests)
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(PlainFormatter() if fmt == "plain" else JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("propdash").setLevel((os.getenv("ENGINE_LOG_LEVEL") or level).upper())
