# backend/tests/test_config.py
from __future__ import annotations

import json
import logging

import pytest

from propdash.config import Settings, settings
from propdash.logging_config import JsonFormatter, PlainFormatter
from propdash.middleware.request_id import request_id_ctx


def test_default_weights_sum_to_one():
    for weights in (settings.sla_weights(), settings.risk_weights(), settings.vacancy_weights()):
        assert abs(sum(weights.values()) - 1.0) < 1e-9


def test_unbalanced_weights_are_rejected():
    with pytest.raises(ValueError):
        Settings(sla_weight_acknowledgement=0.5)


def test_negative_weight_is_rejected():
    with pytest.raises(ValueError):
        Settings(risk_weight_payment_history=-0.1, risk_weight_late_payments=0.7)


def test_half_life_must_be_positive():
    with pytest.raises(ValueError):
        Settings(late_payment_half_life_days=0)


def test_json_formatter_includes_request_id_and_extras():
    record = logging.LogRecord("propdash.test", logging.WARNING, __file__, 1, "skipping %s", ("row",), None)
    record.engine = "rent_chasing"
    record.payment_id = 7

    token = request_id_ctx.set("req-123")
    try:
        line = JsonFormatter().format(record)
    finally:
        request_id_ctx.reset(token)

    payload = json.loads(line)
    assert payload["message"] == "skipping row"
    assert payload["level"] == "WARNING"
    assert payload["request_id"] == "req-123"
    assert payload["engine"] == "rent_chasing"
    assert payload["payment_id"] == 7


def test_plain_formatter_appends_extras():
    record = logging.LogRecord("propdash.test", logging.INFO, __file__, 1, "scored", (), None)
    record.engine = "vacancy"
    record.count = 3

    line = PlainFormatter().format(record)
    assert line.endswith("propdash.test: scored engine=vacancy count=3")
