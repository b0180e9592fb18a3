# backend/propdash/schemas.py
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .domain.formatting import as_utc
from .domain.records import (
    PRIORITY_WEIGHTS,
    MaintenanceRequest,
    Payment,
    Property,
    Staff,
    Tenant,
    Unit,
    User,
)

log = logging.getLogger(__name__)


def _coerce_dt(v: Any) -> Optional[datetime]:
    """
    The records API mixes ISO datetimes, bare dates, "Z" suffixes and empty strings.
    Anything unparseable becomes None (optional fields default, they do not fail the row).
    """
    if v is None:
        return None
    if isinstance(v, datetime):
        return as_utc(v)
    if isinstance(v, date):
        return as_utc(datetime(v.year, v.month, v.day))
    s = str(v).strip()
    if not s:
        return None
    try:
        return as_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        log.debug("unparseable date dropped", extra={"record_kind": "datetime"})
        return None


def _clean_str(v: Any) -> str:
    return str(v).strip() if v is not None else ""


def _to_float(v: Any) -> float:
    s = _clean_str(v).replace(",", "")
    for prefix in ("KES", "KSh", "KSH"):
        if s.upper().startswith(prefix.upper()):
            s = s[len(prefix):].strip()
    if not s:
        return 0.0
    try:
        return float(s)
    except ValueError:
        return 0.0


def _fk(v: Any) -> Any:
    # "" and 0 both mean "not linked" in the records API.
    if v is None or v in ("", 0, "0"):
        return None
    return v


# -------------------- Inbound (records API rows) --------------------

class _In(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserIn(_In):
    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "user_id", "userId"))
    full_name: str = Field(default="", validation_alias=AliasChoices("full_name", "fullName", "name"))
    email: str = ""
    phone: str = Field(default="", validation_alias=AliasChoices("phone", "phone_number", "phoneNumber"))

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Any:
        return _fk(v)

    @field_validator("full_name", "email", "phone", mode="before")
    @classmethod
    def _blank(cls, v: Any) -> str:
        return _clean_str(v)

    def to_record(self) -> User:
        return User(id=self.id, full_name=self.full_name, email=self.email, phone=self.phone)


class PropertyIn(_In):
    id: Optional[int] = None
    name: str = Field(default="", validation_alias=AliasChoices("name", "property_name", "propertyName"))

    @field_validator("name", mode="before")
    @classmethod
    def _blank(cls, v: Any) -> str:
        return _clean_str(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Any:
        return _fk(v)

    def to_record(self) -> Property:
        return Property(id=self.id, name=self.name)


class UnitIn(_In):
    id: Optional[int] = None
    unit_number: str = Field(default="", validation_alias=AliasChoices("unit_number", "unitNumber", "number"))
    property: Optional[PropertyIn] = None

    @field_validator("unit_number", mode="before")
    @classmethod
    def _blank(cls, v: Any) -> str:
        return _clean_str(v)

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Any:
        return _fk(v)

    def to_record(self) -> Unit:
        return Unit(
            id=self.id,
            unit_number=self.unit_number,
            property=self.property.to_record() if self.property else None,
        )


class TenantIn(_In):
    id: int
    unit_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("unit_id", "unitId"))
    unit: Optional[UnitIn] = None
    user: Optional[UserIn] = None
    lease_start: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("lease_start", "leaseStart", "lease_start_date", "leaseStartDate")
    )
    lease_end: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("lease_end", "leaseEnd", "lease_end_date", "leaseEndDate")
    )
    renewal_confirmed: bool = Field(
        default=False, validation_alias=AliasChoices("renewal_confirmed", "renewalConfirmed", "lease_renewed")
    )

    @field_validator("lease_start", "lease_end", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Optional[datetime]:
        return _coerce_dt(v)

    @field_validator("unit_id", mode="before")
    @classmethod
    def _blank_fk(cls, v: Any) -> Any:
        return _fk(v)

    @field_validator("renewal_confirmed", mode="before")
    @classmethod
    def _renewal(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return False
        return v

    def to_record(self) -> Tenant:
        unit = self.unit.to_record() if self.unit else None
        if unit is not None and unit.id is None and self.unit_id is not None:
            unit = replace(unit, id=self.unit_id)
        return Tenant(
            id=self.id,
            unit_id=self.unit_id if self.unit_id is not None else (unit.id if unit else None),
            unit=unit,
            user=self.user.to_record() if self.user else None,
            lease_start=self.lease_start,
            lease_end=self.lease_end,
            renewal_confirmed=bool(self.renewal_confirmed),
        )


class PaymentIn(_In):
    id: int
    tenant_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("tenant_id", "tenantId"))
    unit_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("unit_id", "unitId"))
    amount: float = 0.0
    due_date: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("due_date", "dueDate"))
    payment_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("payment_date", "paymentDate", "paid_at", "paidAt")
    )
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))
    payment_status: str = Field(
        default="pending", validation_alias=AliasChoices("payment_status", "paymentStatus", "status")
    )
    payment_type: str = Field(default="rent", validation_alias=AliasChoices("payment_type", "paymentType", "type"))

    @field_validator("due_date", "payment_date", "created_at", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Optional[datetime]:
        return _coerce_dt(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> float:
        if isinstance(v, (int, float)):
            return float(v)
        return _to_float(v)

    @field_validator("payment_status", "payment_type", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> str:
        return _clean_str(v).lower()

    @field_validator("tenant_id", "unit_id", mode="before")
    @classmethod
    def _blank_fk(cls, v: Any) -> Any:
        return _fk(v)

    def to_record(self) -> Payment:
        return Payment(
            id=self.id,
            tenant_id=self.tenant_id,
            unit_id=self.unit_id,
            amount=float(self.amount),
            due_date=self.due_date,
            payment_date=self.payment_date,
            created_at=self.created_at,
            payment_status=self.payment_status or "pending",
            payment_type=self.payment_type or "rent",
        )


class MaintenanceRequestIn(_In):
    id: int
    title: str = ""
    category: Optional[str] = Field(default=None, validation_alias=AliasChoices("category", "issue_category", "issueCategory"))
    priority: str = "medium"
    status: str = "pending"
    reported_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("reported_date", "reportedDate", "created_at", "createdAt")
    )
    scheduled_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("scheduled_date", "scheduledDate")
    )
    updated_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    completed_date: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("completed_date", "completedDate", "completed_at", "completedAt")
    )
    assigned_to: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("assigned_to", "assignedTo", "staff_id", "staffId")
    )
    tenant_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("tenant_id", "tenantId"))
    unit_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("unit_id", "unitId"))

    @field_validator("reported_date", "scheduled_date", "updated_at", "completed_date", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Optional[datetime]:
        return _coerce_dt(v)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return _clean_str(v)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> Optional[str]:
        s = _clean_str(v).lower()
        return s or None

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, v: Any) -> str:
        s = _clean_str(v).lower()
        return s if s in PRIORITY_WEIGHTS else "medium"

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> str:
        s = _clean_str(v).lower().replace("-", "_").replace(" ", "_")
        return s or "pending"

    @field_validator("assigned_to", "tenant_id", "unit_id", mode="before")
    @classmethod
    def _blank_fk(cls, v: Any) -> Any:
        return _fk(v)

    def to_record(self) -> MaintenanceRequest:
        return MaintenanceRequest(
            id=self.id,
            title=self.title,
            category=self.category,
            priority=self.priority,
            status=self.status,
            reported_date=self.reported_date,
            scheduled_date=self.scheduled_date,
            updated_at=self.updated_at,
            completed_date=self.completed_date,
            assigned_to=self.assigned_to,
            tenant_id=self.tenant_id,
            unit_id=self.unit_id,
        )


class StaffIn(_In):
    id: int
    user_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))
    user: Optional[UserIn] = None
    department: str = ""

    @field_validator("department", mode="before")
    @classmethod
    def _blank(cls, v: Any) -> str:
        return _clean_str(v)

    @field_validator("user_id", mode="before")
    @classmethod
    def _blank_fk(cls, v: Any) -> Any:
        return _fk(v)

    def to_record(self) -> Staff:
        user = self.user.to_record() if self.user else None
        return Staff(
            id=self.id,
            user_id=self.user_id if self.user_id is not None else (user.id if user else None),
            user=user,
            department=self.department,
        )


class SnapshotIn(_In):
    """
    One dashboard snapshot as fetched from the records API.
    Rows stay raw here; propdash.snapshot validates them one at a time.
    """

    tenants: list[Any] = Field(default_factory=list)
    payments: list[Any] = Field(default_factory=list)
    maintenance: list[Any] = Field(
        default_factory=list,
        validation_alias=AliasChoices("maintenance", "maintenance_requests", "maintenanceRequests"),
    )
    staff: list[Any] = Field(default_factory=list)
    now: Optional[datetime] = None

    @field_validator("now", mode="before")
    @classmethod
    def _now(cls, v: Any) -> Optional[datetime]:
        # An explicit evaluation instant must parse.
        ts = _coerce_dt(v)
        if ts is None and _clean_str(v):
            raise ValueError(f"unparseable evaluation time: {v!r}")
        return ts


# -------------------- Outbound (dashboard payloads) --------------------

class _Out(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


class RecordErrorOut(_Out):
    kind: str
    row: int
    error: str


class UserOut(_Out):
    id: Optional[int] = None
    full_name: str
    email: str
    phone: str


class PropertyOut(_Out):
    id: Optional[int] = None
    name: str


class UnitOut(_Out):
    id: Optional[int] = None
    unit_number: str
    property: Optional[PropertyOut] = None


class TenantOut(_Out):
    id: int
    unit_id: Optional[int] = None
    unit: Optional[UnitOut] = None
    user: Optional[UserOut] = None
    lease_start: Optional[datetime] = None
    lease_end: Optional[datetime] = None
    renewal_confirmed: bool = False


class StaffOut(_Out):
    id: int
    user_id: Optional[int] = None
    user: Optional[UserOut] = None
    department: str


# ---- SLA ----

class PerformanceFactorsOut(_Out):
    acknowledgement: int
    resolution: int
    completion_rate: int
    repeat_issues: int


class StaffPerformanceOut(_Out):
    staff_id: int
    staff: StaffOut
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
    sla_compliance_rate: float = Field(serialization_alias="slaComplianceRate")
    repeat_issue_count: int
    factors: PerformanceFactorsOut


class SLASummaryOut(_Out):
    total_requests: int
    completed_requests: int
    unassigned_requests: int
    avg_acknowledge_hours: float
    avg_resolve_hours: float
    overall_sla_compliance: float = Field(serialization_alias="overallSLACompliance")
    staff_performances: list[StaffPerformanceOut]


# ---- Tenant risk ----

class RiskFactorsOut(_Out):
    payment_history: int
    late_payments: int
    amount_volatility: int
    maintenance: int
    occupancy_duration: int


class TenantRiskScoreOut(_Out):
    tenant_id: int
    tenant: TenantOut
    score: int
    level: str
    factors: RiskFactorsOut


# ---- Vacancy ----

class VacancyFactorsOut(_Out):
    lease_end_proximity: int
    late_rent_pattern: int
    maintenance_frequency: int
    payment_failures: int


class VacancyAlertOut(_Out):
    tenant_id: int
    tenant: TenantOut
    unit_number: str
    property_name: str
    score: int
    risk: str
    estimated_days: Optional[int] = None
    estimated_label: str
    factors: VacancyFactorsOut


# ---- Rent chasing ----

class OverduePaymentOut(_Out):
    payment_id: int
    amount: float
    due_date: datetime
    days_overdue: int
    payment_type: str


class MessageTemplateOut(_Out):
    subject: str
    sms: str
    whatsapp: str
    sms_swahili: str
    whatsapp_swahili: str
    channel: str
    escalation: str


class OverdueTenantOut(_Out):
    tenant_id: int
    tenant: TenantOut
    tenant_name: str
    tenant_phone: str
    tenant_email: str
    unit_number: str
    property_name: str
    overdue_payments: list[OverduePaymentOut]
    total_overdue: float
    max_days_overdue: int
    escalation: str
    suggested_message: MessageTemplateOut
    whatsapp_link: Optional[str] = None
    sms_link: Optional[str] = None


class RentChasingSummaryOut(_Out):
    total_overdue: int
    total_amount: float
    by_escalation: dict[str, int]
    tenants: list[OverdueTenantOut]
