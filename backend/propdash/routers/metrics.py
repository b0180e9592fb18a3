# backend/propdash/routers/metrics.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse

from ..middleware.structured_logging import REJECTED_ROWS_HEADER
from ..schemas import SnapshotIn
from ..services.dashboard import config_payload, dashboard_payload, engine_payload
from ..services.runtime_metrics import METRICS
from ..snapshot import NormalizedSnapshot, normalize_snapshot

router = APIRouter(prefix="/metrics", tags=["metrics"])


def _normalized(payload: SnapshotIn, response: Response) -> NormalizedSnapshot:
    snap = normalize_snapshot(payload)
    response.headers[REJECTED_ROWS_HEADER] = str(len(snap.errors))
    return snap


def _run(engine: str, payload: SnapshotIn, response: Response) -> dict[str, Any]:
    return engine_payload(_normalized(payload, response), engine)


@router.post("/sla", response_model=dict)
def sla(payload: SnapshotIn, response: Response):
    return _run("sla", payload, response)


@router.post("/tenant-risk", response_model=dict)
def tenant_risk(payload: SnapshotIn, response: Response):
    return _run("tenant_risk", payload, response)


@router.post("/vacancy", response_model=dict)
def vacancy(payload: SnapshotIn, response: Response):
    return _run("vacancy", payload, response)


@router.post("/rent-chasing", response_model=dict)
def rent_chasing(payload: SnapshotIn, response: Response):
    return _run("rent_chasing", payload, response)


@router.post("/dashboard", response_model=dict)
def dashboard(payload: SnapshotIn, response: Response):
    """All four engines over one snapshot, evaluated at the same instant."""
    return dashboard_payload(_normalized(payload, response))


@router.get("/config", response_model=dict)
def config():
    return config_payload()


@router.get("/runtime", response_class=PlainTextResponse)
def runtime():
    # Prometheus text-ish format
    lines = [f"{k} {v}" for k, v in METRICS.snapshot().items()]
    return "\n".join(lines) + "\n"
