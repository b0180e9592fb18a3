# backend/propdash/services/dashboard.py
from __future__ import annotations

import logging
from typing import Any

from ..config import settings
from ..domain.bands import table_to_dict
from ..domain.formatting import resolve_now
from ..domain.maintenance_sla import PERFORMANCE_GRADE_CONFIG, SLA_TARGETS, calculate_sla_summary
from ..domain.rent_chasing import ESCALATION_CONFIG, MESSAGE_TEMPLATES, generate_chasing_summary
from ..domain.tenant_risk import RISK_LEVEL_CONFIG, calculate_all_tenant_risk_scores
from ..domain.vacancy_prediction import VACANCY_RISK_CONFIG, predict_all_vacancies
from ..schemas import (
    RecordErrorOut,
    RentChasingSummaryOut,
    SLASummaryOut,
    TenantRiskScoreOut,
    VacancyAlertOut,
)
from ..snapshot import NormalizedSnapshot
from .runtime_metrics import METRICS

log = logging.getLogger(__name__)

ENGINES = ("sla", "tenant_risk", "vacancy", "rent_chasing")


def _dump(model: Any, obj: Any) -> dict[str, Any]:
    return model.model_validate(obj).model_dump(by_alias=True, mode="json")


def _envelope(snap: NormalizedSnapshot, engine: str, body: dict[str, Any]) -> dict[str, Any]:
    METRICS.inc(f"engine_runs_{engine}")
    METRICS.inc("records_rejected", len(snap.errors))
    return {
        "metricsVersion": settings.metrics_version,
        "generatedAt": resolve_now(snap.now).isoformat(),
        **body,
        "errors": [_dump(RecordErrorOut, e) for e in snap.errors],
    }


def sla_body(snap: NormalizedSnapshot) -> dict[str, Any]:
    summary = calculate_sla_summary(snap.staff, snap.maintenance)
    return {"sla": _dump(SLASummaryOut, summary)}


def tenant_risk_body(snap: NormalizedSnapshot) -> dict[str, Any]:
    scores = calculate_all_tenant_risk_scores(snap.tenants, snap.payments, snap.maintenance, now=snap.now)
    return {"tenantRisk": [_dump(TenantRiskScoreOut, s) for s in scores]}


def vacancy_body(snap: NormalizedSnapshot) -> dict[str, Any]:
    alerts = predict_all_vacancies(snap.tenants, snap.payments, snap.maintenance, now=snap.now)
    return {"vacancy": [_dump(VacancyAlertOut, a) for a in alerts]}


def rent_chasing_body(snap: NormalizedSnapshot) -> dict[str, Any]:
    summary = generate_chasing_summary(snap.tenants, snap.payments, now=snap.now)
    return {"rentChasing": _dump(RentChasingSummaryOut, summary)}


_BODIES = {
    "sla": sla_body,
    "tenant_risk": tenant_risk_body,
    "vacancy": vacancy_body,
    "rent_chasing": rent_chasing_body,
}


def engine_payload(snap: NormalizedSnapshot, engine: str) -> dict[str, Any]:
    try:
        build = _BODIES[engine]
    except KeyError:
        raise ValueError(f"unknown engine: {engine}") from None
    if snap.now is None:
        snap.now = resolve_now(None)
    return _envelope(snap, engine, build(snap))


def dashboard_payload(snap: NormalizedSnapshot) -> dict[str, Any]:
    """All four engines over one snapshot, evaluated at the same instant."""
    if snap.now is None:
        snap.now = resolve_now(None)

    body: dict[str, Any] = {}
    for engine in ENGINES:
        body.update(_BODIES[engine](snap))
        METRICS.inc(f"engine_runs_{engine}")

    log.info("dashboard computed", extra={"engine": "dashboard", "count": len(snap.tenants)})
    return _envelope(snap, "dashboard", body)


def config_payload() -> dict[str, Any]:
    """Band tables and SLA targets so the UI renders from the same definitions."""
    return {
        "metricsVersion": settings.metrics_version,
        "currency": settings.currency_code,
        "slaTargets": {k: {"acknowledge": t.acknowledge, "resolve": t.resolve} for k, t in SLA_TARGETS.items()},
        "performanceGrades": table_to_dict(PERFORMANCE_GRADE_CONFIG),
        "riskLevels": table_to_dict(RISK_LEVEL_CONFIG),
        "vacancyRisk": table_to_dict(VACANCY_RISK_CONFIG),
        "escalation": table_to_dict(ESCALATION_CONFIG),
        "messageChannels": {k: m.channel for k, m in MESSAGE_TEMPLATES.items()},
        "weights": {
            "sla": settings.sla_weights(),
            "tenantRisk": settings.risk_weights(),
            "vacancy": settings.vacancy_weights(),
        },
    }
