# backend/propdash/domain/vacancy_prediction.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from ..config import settings
from .bands import Band, band_for, band_table
from .formatting import as_utc, clamp, days_overdue, days_until, resolve_now
from .grouping import group_maintenance_by_tenant, group_payments_by_tenant
from .records import MaintenanceRequest, Payment, Tenant, priority_points
from .tenant_risk import payment_history_factor

log = logging.getLogger(__name__)

VACANCY_RISK_CONFIG = band_table(
    Band("low", "Low", "#22C55E", "bg-green-100 text-green-800", 0),
    Band("medium", "Medium", "#F59E0B", "bg-amber-100 text-amber-800", 26),
    Band("high", "High", "#F97316", "bg-orange-100 text-orange-800", 51),
    Band("critical", "Critical", "#EF4444", "bg-red-100 text-red-800", 76),
)

# (days until lease end strictly below, factor)
LEASE_END_STEPS = (
    (30, 100),
    (60, 75),
    (90, 50),
    (180, 25),
)
UNKNOWN_LEASE_END_FACTOR = 50
WORSENING_TREND_BONUS = 15
MAINTENANCE_POINTS_SATURATION = 20.0

# (risk band, horizon in days) for the vacancy estimate; cut points follow VACANCY_RISK_CONFIG
ESTIMATE_HORIZONS = (
    ("critical", 30),
    ("high", 60),
    ("medium", 90),
)


@dataclass(frozen=True)
class VacancyFactors:
    lease_end_proximity: int
    late_rent_pattern: int
    maintenance_frequency: int
    payment_failures: int


@dataclass(frozen=True)
class VacancyAlert:
    tenant_id: int
    tenant: Tenant
    unit_number: str
    property_name: str
    score: int
    risk: str
    estimated_days: Optional[int]
    estimated_label: str
    factors: VacancyFactors


def get_vacancy_risk(score: float) -> str:
    return band_for(score, VACANCY_RISK_CONFIG).key


def get_vacancy_color(risk: str) -> str:
    return VACANCY_RISK_CONFIG[risk].color


def get_vacancy_bg_class(risk: str) -> str:
    return VACANCY_RISK_CONFIG[risk].bg_class


def estimate_days_to_vacancy(
    score: float,
    lease_end: Optional[datetime],
    now: Optional[datetime] = None,
    *,
    renewal_confirmed: bool = False,
) -> tuple[Optional[int], str]:
    """
    Projected days until the unit is likely vacated.

    The higher the score, the shorter the horizon; the projection never runs past
    the lease end date. A confirmed renewal has no projection.
    """
    if renewal_confirmed:
        return None, "Renewed"

    remaining = days_until(lease_end, resolve_now(now))
    if remaining is None:
        return None, "Unknown"
    if remaining <= 0:
        return 0, "Expired"

    for risk, horizon in ESTIMATE_HORIZONS:
        if score >= VACANCY_RISK_CONFIG[risk].min_value:
            d = min(remaining, horizon)
            return d, f"~{d} days"
    return remaining, f"{remaining}+ days"


# -------------------- factors --------------------

def lease_end_proximity_factor(tenant: Tenant, now: datetime) -> int:
    if tenant.renewal_confirmed:
        return 0
    remaining = days_until(tenant.lease_end, now)
    if remaining is None:
        return UNKNOWN_LEASE_END_FACTOR
    for below, factor in LEASE_END_STEPS:
        if remaining < below:
            return factor
    return 0


def _paid_late(p: Payment) -> bool:
    return days_overdue(p.due_date, p.payment_date) > 0


def late_rent_pattern_factor(payments: Iterable[Payment], recent: Optional[int] = None) -> int:
    """
    Share of recent paid rent that came in after the due date, with a bump when the
    later half of the window is worse than the earlier half.
    """
    n = int(recent if recent is not None else settings.vacancy_recent_payment_count)
    paid = [p for p in payments if p.is_rent and p.payment_date is not None and p.due_date is not None]
    if not paid:
        return 0

    paid.sort(key=lambda p: (as_utc(p.due_date), p.id))
    window = paid[-n:] if n > 0 else paid

    flags = [_paid_late(p) for p in window]
    late_ratio = sum(flags) / len(flags)
    base = late_ratio * 100

    mid = len(flags) // 2
    if mid > 0:
        first, second = flags[:mid], flags[mid:]
        if sum(second) / len(second) > sum(first) / len(first):
            return int(clamp(round(base + WORSENING_TREND_BONUS)))

    return int(clamp(round(base)))


def maintenance_frequency_factor(requests: list[MaintenanceRequest], baseline: Optional[float] = None) -> int:
    """Priority-weighted complaint volume above a normal baseline."""
    if not requests:
        return 0
    base = float(baseline if baseline is not None else settings.vacancy_maintenance_baseline_points)
    span = max(1.0, MAINTENANCE_POINTS_SATURATION - base)
    excess = priority_points(requests) - base
    return int(clamp(round(excess / span * 100)))


# -------------------- main --------------------

def predict_vacancy(
    tenant: Tenant,
    payments: Iterable[Payment],
    maintenance: Iterable[MaintenanceRequest],
    *,
    now: Optional[datetime] = None,
) -> VacancyAlert:
    ts = resolve_now(now)
    payments = list(payments)
    maintenance = list(maintenance)

    factors = VacancyFactors(
        lease_end_proximity=lease_end_proximity_factor(tenant, ts),
        late_rent_pattern=late_rent_pattern_factor(payments),
        maintenance_frequency=maintenance_frequency_factor(maintenance),
        payment_failures=payment_history_factor(payments),
    )

    w = settings.vacancy_weights()
    score = int(
        clamp(
            round(
                factors.lease_end_proximity * w["lease_end_proximity"]
                + factors.late_rent_pattern * w["late_rent_pattern"]
                + factors.maintenance_frequency * w["maintenance_frequency"]
                + factors.payment_failures * w["payment_failures"]
            )
        )
    )

    days, label = estimate_days_to_vacancy(
        score, tenant.lease_end, ts, renewal_confirmed=tenant.renewal_confirmed
    )

    return VacancyAlert(
        tenant_id=tenant.id,
        tenant=tenant,
        unit_number=tenant.unit_number,
        property_name=tenant.property_name,
        score=score,
        risk=get_vacancy_risk(score),
        estimated_days=days,
        estimated_label=label,
        factors=factors,
    )


def predict_all_vacancies(
    tenants: Iterable[Tenant],
    payments: Iterable[Payment],
    maintenance: Iterable[MaintenanceRequest],
    *,
    now: Optional[datetime] = None,
) -> list[VacancyAlert]:
    """Highest vacancy risk first."""
    ts = resolve_now(now)
    tenants = list(tenants)

    payments_by_tenant = group_payments_by_tenant(tenants, payments, engine="vacancy")
    maintenance_by_tenant = group_maintenance_by_tenant(tenants, maintenance, engine="vacancy")

    alerts = [
        predict_vacancy(
            t,
            payments_by_tenant.get(t.id, []),
            maintenance_by_tenant.get(t.id, []),
            now=ts,
        )
        for t in tenants
    ]
    alerts.sort(key=lambda a: (-a.score, a.tenant_id))

    log.debug("vacancy predicted", extra={"engine": "vacancy", "count": len(alerts)})
    return alerts
