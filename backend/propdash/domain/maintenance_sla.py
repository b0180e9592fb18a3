# backend/propdash/domain/maintenance_sla.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from statistics import mean
from types import MappingProxyType
from typing import Iterable, Optional

from ..config import settings
from .bands import Band, band_for, band_table
from .formatting import as_utc, clamp, hours_between
from .records import MaintenanceRequest, Staff

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SLATarget:
    acknowledge: float  # hours
    resolve: float  # hours


# Strictly increasing from urgent to low.
SLA_TARGETS = MappingProxyType(
    {
        "urgent": SLATarget(acknowledge=1, resolve=24),
        "high": SLATarget(acknowledge=4, resolve=48),
        "medium": SLATarget(acknowledge=12, resolve=96),
        "low": SLATarget(acknowledge=24, resolve=168),
    }
)

PERFORMANCE_GRADE_CONFIG = band_table(
    Band("poor", "Poor", "#EF4444", "bg-red-100 text-red-800", 0),
    Band("fair", "Fair", "#F59E0B", "bg-amber-100 text-amber-800", 50),
    Band("good", "Good", "#3B82F6", "bg-blue-100 text-blue-800", 75),
    Band("excellent", "Excellent", "#22C55E", "bg-green-100 text-green-800", 90),
)

ACKNOWLEDGED_STATUSES = frozenset({"in_progress", "completed"})

# Cap on elapsed/target ratios.
MAX_TARGET_RATIO = 3.0
NEUTRAL_FACTOR = 50
REPEAT_PENALTY = 20

_WORD = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class SLAMetrics:
    acknowledge_time_hours: Optional[float]
    resolve_time_hours: Optional[float]
    within_sla: Optional[bool]  # None until resolved


@dataclass(frozen=True)
class PerformanceFactors:
    acknowledgement: int
    resolution: int
    completion_rate: int
    repeat_issues: int


@dataclass(frozen=True)
class StaffPerformance:
    staff_id: int
    staff: Staff
    staff_name: str
    department: str
    score: int
    grade: str
    total_assigned: int
    completed: int
    pending: int
    in_progress: int
    avg_acknowledge_hours: float
    avg_resolve_hours: float
    sla_compliance_rate: float
    repeat_issue_count: int
    factors: PerformanceFactors


@dataclass(frozen=True)
class SLASummary:
    total_requests: int
    completed_requests: int
    unassigned_requests: int
    avg_acknowledge_hours: float
    avg_resolve_hours: float
    overall_sla_compliance: float
    staff_performances: list[StaffPerformance]


# -------------------- helpers --------------------

def sla_target(priority: Optional[str]) -> SLATarget:
    return SLA_TARGETS.get((priority or "").strip().lower(), SLA_TARGETS["medium"])


def get_performance_grade(score: float) -> str:
    return band_for(score, PERFORMANCE_GRADE_CONFIG).key


def get_grade_color(grade: str) -> str:
    return PERFORMANCE_GRADE_CONFIG[grade].color


def get_grade_bg_class(grade: str) -> str:
    return PERFORMANCE_GRADE_CONFIG[grade].bg_class


def acknowledged_at(request: MaintenanceRequest):
    """
    First-response timestamp: the scheduled visit if one was booked, else the first
    status change. Pending (and cancelled) requests have none.
    """
    if request.status not in ACKNOWLEDGED_STATUSES:
        return None
    return request.scheduled_date or request.updated_at


def calculate_request_sla(request: MaintenanceRequest) -> SLAMetrics:
    target = sla_target(request.priority)

    ack_hours = hours_between(request.reported_date, acknowledged_at(request))

    resolve_hours: Optional[float] = None
    if request.status == "completed":
        resolve_hours = hours_between(request.reported_date, request.completed_date)

    within = None if resolve_hours is None else resolve_hours <= target.resolve

    return SLAMetrics(
        acknowledge_time_hours=ack_hours,
        resolve_time_hours=resolve_hours,
        within_sla=within,
    )


def _ratio_factor(ratios: list[float]) -> int:
    """
    Mean elapsed/target ratio mapped onto 0..100:
      ratio 0 -> 100, ratio 1 (at target) -> 50, ratio >= 2 -> 0
    """
    if not ratios:
        return NEUTRAL_FACTOR
    avg = mean(min(r, MAX_TARGET_RATIO) for r in ratios)
    return int(clamp(round(100 - avg * 50)))


def _acknowledgement_factor(requests: list[MaintenanceRequest], metrics: list[SLAMetrics]) -> int:
    ratios = [
        m.acknowledge_time_hours / sla_target(r.priority).acknowledge
        for r, m in zip(requests, metrics)
        if m.acknowledge_time_hours is not None
    ]
    return _ratio_factor(ratios)


def _resolution_factor(requests: list[MaintenanceRequest], metrics: list[SLAMetrics]) -> int:
    ratios = [
        m.resolve_time_hours / sla_target(r.priority).resolve
        for r, m in zip(requests, metrics)
        if m.resolve_time_hours is not None
    ]
    return _ratio_factor(ratios)


def _title_words(title: str) -> set[str]:
    return {w for w in _WORD.findall((title or "").lower()) if len(w) > 3}


def _same_issue(a: MaintenanceRequest, b: MaintenanceRequest) -> bool:
    ca = (a.category or "").strip().lower()
    cb = (b.category or "").strip().lower()
    if ca and cb:
        return ca == cb
    return bool(_title_words(a.title) & _title_words(b.title))


def count_repeat_issues(requests: Iterable[MaintenanceRequest], window_days: Optional[int] = None) -> int:
    """
    Completed requests that re-open an issue: the same unit reported the same issue
    within `window_days` of an earlier completed fix.
    """
    window = timedelta(days=int(window_days if window_days is not None else settings.repeat_issue_window_days))

    by_unit: dict[int, list[MaintenanceRequest]] = {}
    for r in requests:
        if r.status != "completed" or r.unit_id is None or r.reported_date is None:
            continue
        by_unit.setdefault(r.unit_id, []).append(r)

    repeats = 0
    for unit_requests in by_unit.values():
        unit_requests.sort(key=lambda r: (as_utc(r.reported_date), r.id))
        for j, later in enumerate(unit_requests):
            for earlier in unit_requests[:j]:
                if earlier.completed_date is None:
                    continue
                gap = as_utc(later.reported_date) - as_utc(earlier.completed_date)
                if timedelta(0) <= gap <= window and _same_issue(earlier, later):
                    repeats += 1
                    break
    return repeats


def _mean_or_zero(values: list[float]) -> float:
    return float(mean(values)) if values else 0.0


def _compliance_pct(metrics: list[SLAMetrics]) -> float:
    resolved = [m for m in metrics if m.within_sla is not None]
    if not resolved:
        return 0.0
    met = sum(1 for m in resolved if m.within_sla)
    return met / len(resolved) * 100.0


# -------------------- per staff --------------------

def calculate_staff_performance(staff: Staff, requests: Iterable[MaintenanceRequest]) -> StaffPerformance:
    """
    Scores one staff member over the requests assigned to them.

    Requests assigned to someone else are ignored, so callers may pass the whole list.
    """
    assigned = [r for r in requests if r.assigned_to == staff.id]
    metrics = [calculate_request_sla(r) for r in assigned]

    completed = [r for r in assigned if r.status == "completed"]
    total = len(assigned)

    repeat_count = count_repeat_issues(assigned)

    factors = PerformanceFactors(
        acknowledgement=_acknowledgement_factor(assigned, metrics),
        resolution=_resolution_factor(assigned, metrics),
        completion_rate=int(round(len(completed) / total * 100)) if total else NEUTRAL_FACTOR,
        repeat_issues=int(clamp(100 - repeat_count * REPEAT_PENALTY)),
    )

    w = settings.sla_weights()
    score = int(
        clamp(
            round(
                factors.acknowledgement * w["acknowledgement"]
                + factors.resolution * w["resolution"]
                + factors.completion_rate * w["completion_rate"]
                + factors.repeat_issues * w["repeat_issues"]
            )
        )
    )

    return StaffPerformance(
        staff_id=staff.id,
        staff=staff,
        staff_name=staff.full_name or "Unknown",
        department=staff.department or "",
        score=score,
        grade=get_performance_grade(score),
        total_assigned=total,
        completed=len(completed),
        pending=sum(1 for r in assigned if r.status == "pending"),
        in_progress=sum(1 for r in assigned if r.status == "in_progress"),
        avg_acknowledge_hours=_mean_or_zero([m.acknowledge_time_hours for m in metrics if m.acknowledge_time_hours is not None]),
        avg_resolve_hours=_mean_or_zero([m.resolve_time_hours for m in metrics if m.resolve_time_hours is not None]),
        sla_compliance_rate=_compliance_pct(metrics),
        repeat_issue_count=repeat_count,
        factors=factors,
    )


def _group_by_assignee(
    staff_list: list[Staff],
    requests: list[MaintenanceRequest],
) -> tuple[dict[int, list[MaintenanceRequest]], int]:
    known = {s.id for s in staff_list}
    by_staff: dict[int, list[MaintenanceRequest]] = {}
    unassigned = 0

    for r in requests:
        if r.assigned_to is None:
            unassigned += 1
            continue
        if r.assigned_to not in known:
            unassigned += 1
            log.warning(
                "maintenance request assigned to unknown staff; counted as unassigned",
                extra={"engine": "sla", "request_pk": r.id, "staff_id": r.assigned_to},
            )
            continue
        by_staff.setdefault(r.assigned_to, []).append(r)

    return by_staff, unassigned


def _rank(by_staff: dict[int, list[MaintenanceRequest]], staff_list: list[Staff]) -> list[StaffPerformance]:
    out: list[StaffPerformance] = []
    seen: set[int] = set()
    for s in staff_list:
        if s.id in seen:
            continue
        seen.add(s.id)
        assigned = by_staff.get(s.id)
        if not assigned:
            continue
        out.append(calculate_staff_performance(s, assigned))

    # Best performers first
    out.sort(key=lambda p: (-p.score, p.staff_id))
    return out


def calculate_all_staff_performance(
    staff_list: Iterable[Staff],
    requests: Iterable[MaintenanceRequest],
) -> list[StaffPerformance]:
    """Staff with no assignments are left out rather than scored as zero."""
    staff_list = list(staff_list)
    by_staff, _unassigned = _group_by_assignee(staff_list, list(requests))
    return _rank(by_staff, staff_list)


# -------------------- portfolio --------------------

def calculate_sla_summary(
    staff_list: Iterable[Staff],
    requests: Iterable[MaintenanceRequest],
) -> SLASummary:
    """
    Portfolio-wide SLA rollup.

    total_requests == sum(p.total_assigned for p in staff_performances) + unassigned_requests
    """
    staff_list = list(staff_list)
    requests = list(requests)

    by_staff, unassigned = _group_by_assignee(staff_list, requests)
    metrics = [calculate_request_sla(r) for r in requests]

    summary = SLASummary(
        total_requests=len(requests),
        completed_requests=sum(1 for r in requests if r.status == "completed"),
        unassigned_requests=unassigned,
        avg_acknowledge_hours=_mean_or_zero([m.acknowledge_time_hours for m in metrics if m.acknowledge_time_hours is not None]),
        avg_resolve_hours=_mean_or_zero([m.resolve_time_hours for m in metrics if m.resolve_time_hours is not None]),
        overall_sla_compliance=_compliance_pct(metrics),
        staff_performances=_rank(by_staff, staff_list),
    )

    log.debug(
        "sla summary computed",
        extra={"engine": "sla", "count": summary.total_requests},
    )
    return summary
