# backend/tests/test_structured_logging.py
from __future__ import annotations

from propdash.middleware.structured_logging import _engine_for


def test_engine_is_derived_from_metrics_path():
    assert _engine_for("/api/metrics/tenant-risk") == "tenant_risk"
    assert _engine_for("/api/metrics/dashboard") == "dashboard"
    assert _engine_for("/api/metrics/") is None
    assert _engine_for("/api/health") is None
