# backend/propdash/domain/tenant_risk.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from statistics import mean, pstdev
from typing import Iterable, Optional

from ..config import settings
from .bands import Band, band_for, band_table
from .formatting import as_utc, clamp, days_overdue, resolve_now
from .grouping import group_maintenance_by_tenant, group_payments_by_tenant
from .records import (
    PAYMENT_FAILED_STATUSES,
    PAYMENT_UNPAID_STATUSES,
    MaintenanceRequest,
    Payment,
    Tenant,
    priority_points,
)

log = logging.getLogger(__name__)

RISK_LEVEL_CONFIG = band_table(
    Band("low", "Low Risk", "#22C55E", "bg-green-100 text-green-800", 0, {"border_class": "border-green-500"}),
    Band("medium", "Medium Risk", "#F59E0B", "bg-orange-100 text-orange-800", 34, {"border_class": "border-orange-500"}),
    Band("high", "High Risk", "#EF4444", "bg-red-100 text-red-800", 67, {"border_class": "border-red-500"}),
)

LATE_DAYS_SATURATION = 30.0
LATE_FREQUENCY_SHARE = 0.6
MAINTENANCE_POINTS_SATURATION = 20.0
NEW_TENANT_FACTOR = 80


@dataclass(frozen=True)
class RiskFactors:
    payment_history: int
    late_payments: int
    amount_volatility: int
    maintenance: int
    occupancy_duration: int


@dataclass(frozen=True)
class TenantRiskScore:
    tenant_id: int
    tenant: Tenant
    score: int
    level: str
    factors: RiskFactors


def get_risk_level(score: float) -> str:
    return band_for(score, RISK_LEVEL_CONFIG).key


def get_risk_color(level: str) -> str:
    return RISK_LEVEL_CONFIG[level].color


def get_risk_bg_class(level: str) -> str:
    return RISK_LEVEL_CONFIG[level].bg_class


# -------------------- factors --------------------

def _rent(payments: Iterable[Payment]) -> list[Payment]:
    return [p for p in payments if p.is_rent]


def payment_history_factor(payments: Iterable[Payment]) -> int:
    """Share of rent payments that bounced (failed/refunded)."""
    rent = _rent(payments)
    if not rent:
        return 0
    bad = sum(1 for p in rent if p.payment_status in PAYMENT_FAILED_STATUSES)
    return int(round(bad / len(rent) * 100))


def _late_days(p: Payment, now: datetime) -> Optional[int]:
    """
    Days a rent payment was (or still is) late. None when it is not yet due and unpaid.
    """
    paid_at = p.payment_date
    if paid_at is None and p.payment_status == "completed":
        paid_at = p.created_at

    if paid_at is not None:
        return max(0, days_overdue(p.due_date, paid_at))

    if p.payment_status in PAYMENT_UNPAID_STATUSES:
        overdue = days_overdue(p.due_date, now)
        return overdue if overdue > 0 else None

    return 0


def late_payments_factor(payments: Iterable[Payment], now: datetime) -> int:
    """
    Recency-weighted lateness.

    Each rent payment weighs 0.5 ** (age / half_life), so a late payment last month
    counts for more than one a year ago. Blends how often rent is late with how late.
    """
    half_life = float(settings.late_payment_half_life_days)

    total_w = 0.0
    late_w = 0.0
    late_days_w = 0.0
    for p in _rent(payments):
        if p.due_date is None:
            continue
        late = _late_days(p, now)
        if late is None:
            continue
        age = max(0, days_overdue(p.due_date, now))
        w = 0.5 ** (age / half_life)
        total_w += w
        if late > 0:
            late_w += w
            late_days_w += w * late

    if total_w <= 0:
        return 0

    frequency = late_w / total_w
    severity = min(1.0, (late_days_w / total_w) / LATE_DAYS_SATURATION)
    blended = LATE_FREQUENCY_SHARE * frequency + (1 - LATE_FREQUENCY_SHARE) * severity
    return int(clamp(round(blended * 100)))


def amount_volatility_factor(payments: Iterable[Payment]) -> int:
    """Coefficient of variation of rent amounts; partial and irregular payments push it up."""
    amounts = [float(p.amount) for p in _rent(payments) if p.amount and p.amount > 0]
    if len(amounts) < 2:
        return 0
    avg = mean(amounts)
    if avg <= 0:
        return 0
    return int(clamp(round(pstdev(amounts) / avg * 100)))


def maintenance_factor(requests: list[MaintenanceRequest]) -> int:
    if not requests:
        return 0
    return int(clamp(round(priority_points(requests) / MAINTENANCE_POINTS_SATURATION * 100)))


def occupancy_duration_factor(lease_start: Optional[datetime], now: datetime) -> int:
    """
    New tenants carry more unknown risk:
      < 3 months 80, < 6 months 50, < 12 months 30, else 10
    """
    start = as_utc(lease_start)
    if start is None:
        return NEW_TENANT_FACTOR
    months = max(0.0, (now - start).days / 30.0)
    if months < 3:
        return NEW_TENANT_FACTOR
    if months < 6:
        return 50
    if months < 12:
        return 30
    return 10


# -------------------- main --------------------

def calculate_tenant_risk_score(
    tenant: Tenant,
    payments: Iterable[Payment],
    maintenance: Iterable[MaintenanceRequest],
    *,
    now: Optional[datetime] = None,
) -> TenantRiskScore:
    """
    Payments and requests are expected to already belong to the tenant
    (see calculate_all_tenant_risk_scores for the grouping).
    """
    ts = resolve_now(now)
    payments = list(payments)
    maintenance = list(maintenance)

    factors = RiskFactors(
        payment_history=payment_history_factor(payments),
        late_payments=late_payments_factor(payments, ts),
        amount_volatility=amount_volatility_factor(payments),
        maintenance=maintenance_factor(maintenance),
        occupancy_duration=occupancy_duration_factor(tenant.lease_start, ts),
    )

    w = settings.risk_weights()
    score = int(
        clamp(
            round(
                factors.payment_history * w["payment_history"]
                + factors.late_payments * w["late_payments"]
                + factors.amount_volatility * w["amount_volatility"]
                + factors.maintenance * w["maintenance"]
                + factors.occupancy_duration * w["occupancy_duration"]
            )
        )
    )

    return TenantRiskScore(
        tenant_id=tenant.id,
        tenant=tenant,
        score=score,
        level=get_risk_level(score),
        factors=factors,
    )


def calculate_all_tenant_risk_scores(
    tenants: Iterable[Tenant],
    payments: Iterable[Payment],
    maintenance: Iterable[MaintenanceRequest],
    *,
    now: Optional[datetime] = None,
) -> list[TenantRiskScore]:
    """
    One score per tenant, highest risk first. Tenants without history still get a
    (low) score.
    """
    ts = resolve_now(now)
    tenants = list(tenants)

    payments_by_tenant = group_payments_by_tenant(tenants, payments, engine="tenant_risk")
    maintenance_by_tenant = group_maintenance_by_tenant(tenants, maintenance, engine="tenant_risk")

    scores = [
        calculate_tenant_risk_score(
            t,
            payments_by_tenant.get(t.id, []),
            maintenance_by_tenant.get(t.id, []),
            now=ts,
        )
        for t in tenants
    ]
    scores.sort(key=lambda s: (-s.score, s.tenant_id))

    log.debug("tenant risk scored", extra={"engine": "tenant_risk", "count": len(scores)})
    return scores
