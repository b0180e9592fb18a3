# backend/tests/test_snapshot.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from propdash.domain.rent_chasing import generate_chasing_summary
from propdash.snapshot import normalize_snapshot

from snapshots import sample_snapshot


def test_camel_and_snake_rows_normalize_to_records():
    snap = normalize_snapshot(sample_snapshot())

    assert snap.errors == []
    assert snap.now == datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert [t.id for t in snap.tenants] == [1, 2]
    assert [p.id for p in snap.payments] == [1, 2, 3, 4]
    assert [r.id for r in snap.maintenance] == [1, 2, 3]
    assert [s.id for s in snap.staff] == [5, 6]

    jane = snap.tenants[0]
    assert jane.full_name == "Jane Wanjiku"
    assert jane.unit_number == "A1"
    assert jane.property_name == "Sunrise Apartments"
    assert jane.lease_start == datetime(2025, 1, 1, tzinfo=timezone.utc)

    peter = snap.tenants[1]
    assert peter.property_name == "N/A"
    assert peter.lease_end is None


def test_field_coercions():
    snap = normalize_snapshot(sample_snapshot())

    first = snap.payments[0]
    assert first.amount == 15000.0
    assert first.payment_type == "rent"
    assert snap.payments[2].payment_status == "pending"
    assert snap.payments[3].is_rent is False

    urgent, window, gate = snap.maintenance
    assert urgent.priority == "urgent"
    assert urgent.category == "plumbing"
    assert window.status == "in_progress"
    assert gate.assigned_to is None

    assert snap.staff[1].user_id == 202


def test_bad_rows_are_reported_and_skipped():
    raw = sample_snapshot()
    raw["payments"].append({"tenantId": 1, "amount": 100})
    raw["tenants"].append({"id": "not-a-number"})
    raw["staff"].append("garbage")

    snap = normalize_snapshot(raw)

    assert len(snap.payments) == 4
    assert len(snap.tenants) == 2
    kinds = sorted((e.kind, e.row) for e in snap.errors)
    assert kinds == [("payment", 4), ("staff", 2), ("tenant", 2)]
    assert all(e.error for e in snap.errors)


def test_duplicate_ids_keep_the_first_row():
    raw = sample_snapshot()
    raw["payments"].append({"id": 1, "tenantId": 2, "amount": 1})

    snap = normalize_snapshot(raw)

    assert [p.id for p in snap.payments] == [1, 2, 3, 4]
    assert snap.payments[0].tenant_id == 1
    assert [(e.kind, e.row) for e in snap.errors] == [("payment", 4)]


def test_unparseable_dates_become_missing():
    raw = {"tenants": [{"id": 1, "leaseEnd": "someday", "leaseStart": ""}]}
    snap = normalize_snapshot(raw)
    assert snap.tenants[0].lease_end is None
    assert snap.tenants[0].lease_start is None
    assert snap.now is None


def test_unknown_priority_defaults_to_medium():
    snap = normalize_snapshot({"maintenance": [{"id": 1, "priority": "critical!"}]})
    assert snap.maintenance[0].priority == "medium"


def test_non_object_payload_raises():
    with pytest.raises(ValidationError):
        normalize_snapshot([1, 2, 3])


def test_nested_objects_without_ids_keep_the_tenant():
    raw = {
        "tenants": [
            {
                "id": 1,
                "unitId": 7,
                "user": {"full_name": "Jane Wanjiku"},
                "unit": {"unit_number": "A1", "property": {"name": "Sunrise Apartments"}},
                "renewal_confirmed": None,
            }
        ]
    }
    snap = normalize_snapshot(raw)

    assert snap.errors == []
    (jane,) = snap.tenants
    assert jane.full_name == "Jane Wanjiku"
    assert jane.user.id is None
    assert jane.unit.id == 7
    assert jane.unit.property.id is None
    assert jane.property_name == "Sunrise Apartments"
    assert jane.renewal_confirmed is False


def test_blank_foreign_keys_become_missing():
    raw = {
        "tenants": [{"id": 1, "unit_id": ""}],
        "payments": [{"id": 1, "tenant_id": 1, "unit_id": "", "amount": 15000}],
        "staff": [{"id": 5, "userId": "", "user": {"id": "", "name": "Otieno"}}],
        "maintenance": [{"id": 1, "assignedTo": 0, "tenantId": "", "unitId": None}],
    }
    snap = normalize_snapshot(raw)

    assert snap.errors == []
    assert snap.tenants[0].unit_id is None
    assert (snap.payments[0].tenant_id, snap.payments[0].unit_id) == (1, None)
    assert snap.staff[0].user_id is None
    assert snap.staff[0].full_name == "Otieno"
    req = snap.maintenance[0]
    assert (req.assigned_to, req.tenant_id, req.unit_id) == (None, None, None)


def test_payment_with_blank_unit_still_counts_as_overdue():
    now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
    raw = {
        "tenants": [{"id": 1, "user": {"full_name": "Jane"}}],
        "payments": [
            {
                "id": 1,
                "tenant_id": 1,
                "unit_id": "",
                "amount": 15000,
                "due_date": "2026-03-05",
                "payment_status": "pending",
                "payment_type": "rent",
            }
        ],
    }
    snap = normalize_snapshot(raw)
    summary = generate_chasing_summary(snap.tenants, snap.payments, now=now)

    assert summary.total_overdue == 1
    assert summary.tenants[0].max_days_overdue == 10


def test_unparseable_evaluation_time_is_rejected():
    with pytest.raises(ValidationError):
        normalize_snapshot({"now": "next tuesday"})


def test_blank_evaluation_time_means_unset():
    assert normalize_snapshot({"now": ""}).now is None
