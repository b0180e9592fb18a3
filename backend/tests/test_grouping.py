# backend/tests/test_grouping.py
from __future__ import annotations

from propdash.domain.grouping import group_maintenance_by_tenant, group_payments_by_tenant
from propdash.domain.records import MaintenanceRequest, Payment, Tenant


def test_payments_grouped_and_orphans_skipped(caplog):
    tenants = [Tenant(id=1), Tenant(id=2)]
    payments = [Payment(id=1, tenant_id=1), Payment(id=2, tenant_id=9), Payment(id=3, tenant_id=None)]

    with caplog.at_level("WARNING"):
        out = group_payments_by_tenant(tenants, payments, engine="test")

    assert [p.id for p in out[1]] == [1]
    assert out[2] == []
    assert 9 not in out
    assert sum("unknown tenant" in r.getMessage() for r in caplog.records) == 2


def test_maintenance_falls_back_to_unit_occupant():
    tenants = [Tenant(id=1, unit_id=11), Tenant(id=2, unit_id=12)]
    requests = [
        MaintenanceRequest(id=1, tenant_id=1),
        MaintenanceRequest(id=2, unit_id=12),
        MaintenanceRequest(id=3, unit_id=99),
        MaintenanceRequest(id=4, tenant_id=42, unit_id=11),
    ]

    out = group_maintenance_by_tenant(tenants, requests, engine="test")

    assert [r.id for r in out[1]] == [1]
    assert [r.id for r in out[2]] == [2]
