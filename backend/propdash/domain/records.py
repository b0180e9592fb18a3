# backend/propdash/domain/records.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# Normalised, read-only input records.
# Built by propdash.schemas from whatever shape the records API returns;
# the engines only ever see these.


@dataclass(frozen=True)
class User:
    id: Optional[int] = None
    full_name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class Property:
    id: Optional[int] = None
    name: str = ""


@dataclass(frozen=True)
class Unit:
    id: Optional[int] = None
    unit_number: str = ""
    property: Optional[Property] = None


@dataclass(frozen=True)
class Tenant:
    id: int
    unit_id: Optional[int] = None
    unit: Optional[Unit] = None
    user: Optional[User] = None
    lease_start: Optional[datetime] = None
    lease_end: Optional[datetime] = None
    renewal_confirmed: bool = False

    @property
    def full_name(self) -> str:
        return (self.user.full_name if self.user else "") or ""

    @property
    def phone(self) -> str:
        return (self.user.phone if self.user else "") or ""

    @property
    def email(self) -> str:
        return (self.user.email if self.user else "") or ""

    @property
    def unit_number(self) -> str:
        return (self.unit.unit_number if self.unit else "") or "N/A"

    @property
    def property_name(self) -> str:
        if self.unit is None or self.unit.property is None:
            return "N/A"
        return self.unit.property.name or "N/A"


@dataclass(frozen=True)
class Payment:
    id: int
    tenant_id: Optional[int] = None
    unit_id: Optional[int] = None
    amount: float = 0.0
    due_date: Optional[datetime] = None
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    payment_status: str = "pending"  # completed|pending|failed|refunded|overdue
    payment_type: str = "rent"  # rent|water|electricity|...

    @property
    def is_rent(self) -> bool:
        return self.payment_type == "rent"


@dataclass(frozen=True)
class MaintenanceRequest:
    id: int
    title: str = ""
    category: Optional[str] = None
    priority: str = "medium"  # low|medium|high|urgent
    status: str = "pending"  # pending|in_progress|completed|cancelled
    reported_date: Optional[datetime] = None
    scheduled_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    tenant_id: Optional[int] = None
    unit_id: Optional[int] = None


@dataclass(frozen=True)
class Staff:
    id: int
    user_id: Optional[int] = None
    user: Optional[User] = None
    department: str = ""

    @property
    def full_name(self) -> str:
        return (self.user.full_name if self.user else "") or ""


PAYMENT_FAILED_STATUSES = frozenset({"failed", "refunded"})
PAYMENT_UNPAID_STATUSES = frozenset({"pending", "failed", "overdue"})

PRIORITY_WEIGHTS = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "urgent": 4,
}


def priority_points(requests: list[MaintenanceRequest]) -> int:
    """Priority-weighted request volume (low 1 .. urgent 4; unknown counts as low)."""
    return sum(PRIORITY_WEIGHTS.get(r.priority, 1) for r in requests)
