# backend/tests/test_formatting.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from propdash.domain.formatting import (
    as_utc,
    days_overdue,
    days_until,
    first_name,
    format_currency,
    format_hours,
    get_sms_link,
    get_whatsapp_link,
    hours_between,
    normalize_phone,
    render_merge_tags,
)

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def test_format_currency():
    assert format_currency(1500) == "KES 1,500"
    assert format_currency(1500.5) == "KES 1,500.50"
    assert format_currency(0) == "KES 0"
    assert format_currency(250, "USD") == "USD 250"


def test_format_hours():
    assert format_hours(0.75) == "45m"
    assert format_hours(3.5) == "3.5h"
    assert format_hours(48) == "2d"
    assert format_hours(53) == "2d 5h"
    assert format_hours(0) == "0m"


def test_normalize_phone():
    assert normalize_phone("0712 345-678") == "+254712345678"
    assert normalize_phone("254712345678") == "+254712345678"
    assert normalize_phone("+254 (712) 345678") == "+254712345678"
    assert normalize_phone("0712345678", country_code="255") == "+255712345678"
    assert normalize_phone("") == ""
    assert normalize_phone(None) == ""


def test_links_percent_encode_message():
    wa = get_whatsapp_link("0712345678", "Hi Jane, rent's due!\nThanks")
    assert wa == "https://wa.me/254712345678?text=Hi%20Jane%2C%20rent's%20due!%0AThanks"

    sms = get_sms_link("0712345678", "Pay *now*")
    assert sms == "sms:+254712345678?body=Pay%20*now*"


def test_links_need_a_phone():
    assert get_whatsapp_link("", "hello") is None
    assert get_sms_link(None, "hello") is None


def test_render_merge_tags_leaves_unknown_tags():
    out = render_merge_tags("Hi {{ first_name }}, unit {{unit}} {{missing}}", {"first_name": "Jane", "unit": "C4"})
    assert out == "Hi Jane, unit C4 {{missing}}"
    assert render_merge_tags("", {"a": "b"}) == ""


def test_first_name():
    assert first_name("Jane Wanjiku") == "Jane"
    assert first_name("  ") == "Tenant"
    assert first_name(None) == "Tenant"


def test_naive_datetimes_are_utc():
    naive = datetime(2026, 3, 15, 12, 0)
    assert as_utc(naive) == NOW
    assert hours_between(naive, NOW + timedelta(hours=2)) == 2.0


def test_hours_between_never_negative():
    assert hours_between(NOW, NOW - timedelta(hours=5)) == 0.0
    assert hours_between(None, NOW) is None


def test_day_arithmetic():
    assert days_overdue(NOW - timedelta(days=10), NOW) == 10
    assert days_overdue(NOW + timedelta(days=2), NOW) == -2
    assert days_overdue(NOW.replace(hour=23), NOW) == 0
    assert days_overdue(None, NOW) == 0
    assert days_until(NOW + timedelta(days=30), NOW) == 30
    assert days_until(NOW + timedelta(days=29, hours=1), NOW) == 30
    assert days_until(None, NOW) is None
