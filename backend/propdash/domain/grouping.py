# backend/propdash/domain/grouping.py
from __future__ import annotations

import logging
from typing import Iterable

from .records import MaintenanceRequest, Payment, Tenant

log = logging.getLogger(__name__)


def group_payments_by_tenant(
    tenants: Iterable[Tenant],
    payments: Iterable[Payment],
    *,
    engine: str,
) -> dict[int, list[Payment]]:
    """
    One pass over the payments, keyed by tenant id.

    Payments without a tenant, or pointing at a tenant that is not in the snapshot,
    are skipped with a warning.
    """
    known = {t.id for t in tenants}
    out: dict[int, list[Payment]] = {tid: [] for tid in known}
    orphans = 0

    for p in payments:
        if p.tenant_id is None or p.tenant_id not in known:
            orphans += 1
            log.warning(
                "skipping payment with unknown tenant",
                extra={"engine": engine, "payment_id": p.id, "tenant_id": p.tenant_id},
            )
            continue
        out[p.tenant_id].append(p)

    if orphans:
        log.debug("orphaned payments skipped", extra={"engine": engine, "count": orphans})
    return out


def group_maintenance_by_tenant(
    tenants: Iterable[Tenant],
    requests: Iterable[MaintenanceRequest],
    *,
    engine: str,
) -> dict[int, list[MaintenanceRequest]]:
    """
    Requests carry a tenant id when the tenant filed them; staff-filed requests often
    only carry the unit, so those fall back to whichever tenant occupies the unit.
    """
    tenants = list(tenants)
    known = {t.id for t in tenants}
    by_unit: dict[int, int] = {}
    for t in tenants:
        if t.unit_id is not None:
            by_unit.setdefault(t.unit_id, t.id)

    out: dict[int, list[MaintenanceRequest]] = {tid: [] for tid in known}

    for r in requests:
        if r.tenant_id is not None:
            if r.tenant_id in known:
                out[r.tenant_id].append(r)
            else:
                log.warning(
                    "skipping maintenance request with unknown tenant",
                    extra={"engine": engine, "request_pk": r.id, "tenant_id": r.tenant_id},
                )
            continue

        if r.unit_id is not None and r.unit_id in by_unit:
            out[by_unit[r.unit_id]].append(r)
        # Requests for vacant/common areas have no tenant to attribute to.

    return out
