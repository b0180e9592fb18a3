# backend/tests/snapshots.py
from __future__ import annotations

NOW_ISO = "2026-03-15T12:00:00Z"


def sample_snapshot() -> dict:
    """Raw records-API shape: camelCase, string amounts, mixed date formats."""
    return {
        "now": NOW_ISO,
        "tenants": [
            {
                "id": 1,
                "unitId": 11,
                "unit": {"id": 11, "unitNumber": "A1", "property": {"id": 1, "name": "Sunrise Apartments"}},
                "user": {"id": 101, "fullName": "Jane Wanjiku", "email": "jane@example.com", "phone": "0712 345 678"},
                "leaseStart": "2025-01-01",
                "leaseEnd": "2026-04-01T00:00:00Z",
            },
            {
                "id": 2,
                "unit_id": 12,
                "unit": {"id": 12, "unit_number": "A2"},
                "user": {"id": 102, "full_name": "Peter Kamau", "phone": ""},
                "lease_start": "2024-06-01",
                "lease_end": None,
            },
        ],
        "payments": [
            {"id": 1, "tenantId": 1, "amount": "KES 15,000", "dueDate": "2026-03-05", "paymentStatus": "pending"},
            {"id": 2, "tenantId": 1, "amount": 15000, "dueDate": "2026-02-05", "paymentDate": "2026-02-12", "paymentStatus": "completed"},
            {"id": 3, "tenant_id": 2, "amount": 12000, "due_date": "2026-03-13", "payment_status": "Pending"},
            {"id": 4, "tenantId": 2, "amount": 900, "dueDate": "2026-03-01", "paymentType": "water", "paymentStatus": "pending"},
        ],
        "maintenanceRequests": [
            {
                "id": 1,
                "title": "Leaking sink",
                "category": "Plumbing",
                "priority": "URGENT",
                "status": "completed",
                "reportedDate": "2026-03-01T08:00:00Z",
                "updatedAt": "2026-03-01T08:30:00Z",
                "completedDate": "2026-03-01T11:00:00Z",
                "assignedTo": 5,
                "tenantId": 1,
                "unitId": 11,
            },
            {
                "id": 2,
                "title": "Broken window",
                "priority": "high",
                "status": "In Progress",
                "reported_date": "2026-03-10T09:00:00Z",
                "scheduled_date": "2026-03-10T12:00:00Z",
                "assigned_to": 5,
                "unit_id": 12,
            },
            {"id": 3, "title": "Gate lock", "priority": "low", "status": "pending", "reportedDate": "2026-03-12"},
        ],
        "staff": [
            {"id": 5, "userId": 201, "user": {"id": 201, "fullName": "Otieno Mwangi"}, "department": "maintenance"},
            {"id": 6, "user": {"id": 202, "fullName": "Idle Staff"}},
        ],
    }
