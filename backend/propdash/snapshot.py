# backend/propdash/snapshot.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ValidationError

from .domain.records import MaintenanceRequest, Payment, Staff, Tenant
from .schemas import MaintenanceRequestIn, PaymentIn, SnapshotIn, StaffIn, TenantIn

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordError:
    kind: str  # tenant|payment|maintenance|staff
    row: int
    error: str


@dataclass
class NormalizedSnapshot:
    tenants: list[Tenant] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)
    maintenance: list[MaintenanceRequest] = field(default_factory=list)
    staff: list[Staff] = field(default_factory=list)
    now: Optional[datetime] = None
    errors: list[RecordError] = field(default_factory=list)


def _short_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or str(e)


def _normalize_rows(
    kind: str,
    model: type[BaseModel],
    rows: Iterable[Any],
    errors: list[RecordError],
) -> list[Any]:
    out: list[Any] = []
    seen: set[int] = set()
    for i, raw in enumerate(rows):
        try:
            rec = model.model_validate(raw).to_record()
        except ValidationError as e:
            msg = _short_error(e)
            errors.append(RecordError(kind=kind, row=i, error=msg))
            log.warning("record rejected at row %d: %s", i, msg, extra={"record_kind": kind})
            continue

        # Later duplicates of the same id are dropped.
        if rec.id in seen:
            errors.append(RecordError(kind=kind, row=i, error=f"duplicate id {rec.id}"))
            continue
        seen.add(rec.id)
        out.append(rec)
    return out


def normalize_snapshot(payload: Any) -> NormalizedSnapshot:
    """
    Turns a raw records-API snapshot into domain records.

    A malformed row is reported in `errors` and skipped; it never fails the batch.
    A payload that is not an object at all does raise (pydantic ValidationError).
    """
    snap = payload if isinstance(payload, SnapshotIn) else SnapshotIn.model_validate(payload)

    errors: list[RecordError] = []
    out = NormalizedSnapshot(
        tenants=_normalize_rows("tenant", TenantIn, snap.tenants, errors),
        payments=_normalize_rows("payment", PaymentIn, snap.payments, errors),
        maintenance=_normalize_rows("maintenance", MaintenanceRequestIn, snap.maintenance, errors),
        staff=_normalize_rows("staff", StaffIn, snap.staff, errors),
        now=snap.now,
        errors=errors,
    )

    if errors:
        log.info("snapshot normalized with rejected rows", extra={"count": len(errors)})
    return out
