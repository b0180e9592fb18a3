# backend/tests/test_maintenance_sla.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from propdash.domain.maintenance_sla import (
    calculate_all_staff_performance,
    calculate_request_sla,
    calculate_sla_summary,
    calculate_staff_performance,
    count_repeat_issues,
    get_performance_grade,
    sla_target,
)
from propdash.domain.records import MaintenanceRequest, Staff, User

T0 = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def _staff(sid: int, name: str = "Otieno Mwangi") -> Staff:
    return Staff(id=sid, user_id=100 + sid, user=User(id=100 + sid, full_name=name), department="maintenance")


def _req(
    rid: int,
    *,
    staff_id: int | None = 1,
    priority: str = "medium",
    status: str = "completed",
    resolve_hours: float | None = 10,
    ack_hours: float | None = 1,
    unit_id: int | None = None,
    category: str | None = None,
    title: str = "",
    reported: datetime = T0,
) -> MaintenanceRequest:
    return MaintenanceRequest(
        id=rid,
        title=title,
        category=category,
        priority=priority,
        status=status,
        reported_date=reported,
        updated_at=reported + timedelta(hours=ack_hours) if ack_hours is not None else None,
        completed_date=reported + timedelta(hours=resolve_hours) if status == "completed" and resolve_hours is not None else None,
        assigned_to=staff_id,
        unit_id=unit_id,
    )


def test_urgent_request_resolved_in_three_hours_is_within_sla():
    m = calculate_request_sla(_req(1, priority="urgent", resolve_hours=3, ack_hours=0.5))
    assert m.resolve_time_hours == 3.0
    assert m.acknowledge_time_hours == 0.5
    assert m.within_sla is True


def test_pending_request_has_no_resolution_or_acknowledgement():
    m = calculate_request_sla(_req(1, status="pending", ack_hours=2))
    assert m.resolve_time_hours is None
    assert m.acknowledge_time_hours is None
    assert m.within_sla is None


def test_resolution_past_target_is_a_breach():
    m = calculate_request_sla(_req(1, priority="high", resolve_hours=49))
    assert m.within_sla is False


def test_unknown_priority_uses_medium_target():
    assert sla_target("whatever") == sla_target("medium")
    assert sla_target(None).resolve == 96


def test_staff_compliance_and_completion_rate():
    # 10 assigned, 8 completed, 7 of those inside the 96h medium target
    reqs = [_req(i, resolve_hours=10) for i in range(1, 8)]
    reqs.append(_req(8, resolve_hours=120))
    reqs += [_req(9, status="pending"), _req(10, status="pending")]

    perf = calculate_staff_performance(_staff(1), reqs)

    assert perf.total_assigned == 10
    assert perf.completed == 8
    assert perf.pending == 2
    assert perf.sla_compliance_rate == 87.5
    assert perf.factors.completion_rate == 80
    assert 0 <= perf.score <= 100
    assert perf.grade == get_performance_grade(perf.score)
    assert perf.staff_name == "Otieno Mwangi"


def test_staff_performance_ignores_requests_of_other_staff():
    reqs = [_req(1, staff_id=1), _req(2, staff_id=2), _req(3, staff_id=2)]
    perf = calculate_staff_performance(_staff(1), reqs)
    assert perf.total_assigned == 1


def test_fast_staff_outrank_slow_staff():
    fast = [_req(i, staff_id=1, resolve_hours=4, ack_hours=0.5) for i in range(1, 5)]
    slow = [_req(i, staff_id=2, resolve_hours=200, ack_hours=30) for i in range(5, 9)]
    ranked = calculate_all_staff_performance([_staff(1), _staff(2, "Slow")], fast + slow)
    assert [p.staff_id for p in ranked] == [1, 2]
    assert ranked[0].score > ranked[1].score


def test_staff_with_no_assignments_are_excluded():
    ranked = calculate_all_staff_performance([_staff(1), _staff(2)], [_req(1, staff_id=1)])
    assert [p.staff_id for p in ranked] == [1]


def test_summary_counts_add_up_including_unassigned_and_unknown_staff():
    reqs = [
        _req(1, staff_id=1),
        _req(2, staff_id=1),
        _req(3, staff_id=1, status="in_progress"),
        _req(4, staff_id=2),
        _req(5, staff_id=2, status="pending"),
        _req(6, staff_id=None),
        _req(7, staff_id=99),
    ]
    summary = calculate_sla_summary([_staff(1), _staff(2), _staff(3)], reqs)

    assert summary.total_requests == 7
    assert summary.unassigned_requests == 2
    assert summary.total_requests == (
        sum(p.total_assigned for p in summary.staff_performances) + summary.unassigned_requests
    )
    assert {p.staff_id for p in summary.staff_performances} == {1, 2}
    assert summary.completed_requests == 5
    assert summary.overall_sla_compliance == 100.0


def test_empty_summary_is_zeroed():
    summary = calculate_sla_summary([_staff(1)], [])
    assert summary.total_requests == 0
    assert summary.overall_sla_compliance == 0.0
    assert summary.avg_resolve_hours == 0.0
    assert summary.staff_performances == []


def test_repeat_issue_same_unit_same_category_within_window():
    first = _req(1, unit_id=5, category="plumbing", resolve_hours=24)
    again = _req(2, unit_id=5, category="plumbing", reported=T0 + timedelta(days=10))
    assert count_repeat_issues([first, again]) == 1


def test_repeat_issue_needs_same_issue_and_window():
    first = _req(1, unit_id=5, category="plumbing", resolve_hours=24)
    other_issue = _req(2, unit_id=5, category="electrical", reported=T0 + timedelta(days=10))
    too_late = _req(3, unit_id=5, category="plumbing", reported=T0 + timedelta(days=45))
    other_unit = _req(4, unit_id=6, category="plumbing", reported=T0 + timedelta(days=5))
    assert count_repeat_issues([first, other_issue, too_late, other_unit]) == 0


def test_repeat_issue_falls_back_to_title_words():
    first = _req(1, unit_id=5, title="Kitchen sink leaking", resolve_hours=24)
    again = _req(2, unit_id=5, title="Sink leaking again", reported=T0 + timedelta(days=3))
    assert count_repeat_issues([first, again]) == 1


def test_repeat_issues_lower_the_repeat_factor():
    clean = [_req(1, unit_id=5, category="plumbing"), _req(2, unit_id=6, category="plumbing")]
    repeated = [
        _req(1, unit_id=5, category="plumbing"),
        _req(2, unit_id=5, category="plumbing", reported=T0 + timedelta(days=2)),
    ]
    assert calculate_staff_performance(_staff(1), clean).factors.repeat_issues == 100
    perf = calculate_staff_performance(_staff(1), repeated)
    assert perf.repeat_issue_count == 1
    assert perf.factors.repeat_issues == 80


def test_grade_cut_points():
    assert get_performance_grade(100) == "excellent"
    assert get_performance_grade(90) == "excellent"
    assert get_performance_grade(89) == "good"
    assert get_performance_grade(75) == "good"
    assert get_performance_grade(74) == "fair"
    assert get_performance_grade(50) == "fair"
    assert get_performance_grade(49) == "poor"
    assert get_performance_grade(0) == "poor"
