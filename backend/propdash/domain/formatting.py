# backend/propdash/domain/formatting.py
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Optional
from urllib.parse import quote

from ..config import settings

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

TAG_PATTERN = re.compile(r"{{\s*([a-zA-Z0-9_]+)\s*}}")
_PHONE_NOISE = re.compile(r"[\s\-()]")
URI_COMPONENT_SAFE = "!~*'()"


# -------------------- time --------------------

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def resolve_now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now is not None else utcnow()


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Elapsed hours from start to end, never negative. None if either side is missing."""
    a, b = as_utc(start), as_utc(end)
    if a is None or b is None:
        return None
    return max(0.0, (b - a).total_seconds() / SECONDS_PER_HOUR)


def days_until(target: Optional[datetime], now: datetime) -> Optional[int]:
    """Whole days from now until target, rounded up (negative once target has passed)."""
    t = as_utc(target)
    if t is None:
        return None
    return int(math.ceil((t - as_utc(now)).total_seconds() / SECONDS_PER_DAY))


def days_overdue(due: Optional[datetime], now: datetime) -> int:
    """
    Calendar days between the due date and today (both truncated to the day).
    Negative while the payment is not yet due; 0 on the due date itself.
    """
    d = as_utc(due)
    if d is None:
        return 0
    today: date = as_utc(now).date()
    return (today - d.date()).days


# -------------------- numbers --------------------

def clamp(v: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, float(v)))


def format_currency(amount: float, currency: Optional[str] = None) -> str:
    """
    "KES 1,500" for whole amounts, "KES 1,500.50" otherwise.
    """
    code = currency or settings.currency_code
    a = float(amount or 0.0)
    if a.is_integer():
        return f"{code} {int(a):,}"
    return f"{code} {a:,.2f}"


def format_hours(hours: float) -> str:
    """
    Compact duration for SLA cards:
      0.75 -> "45m", 3.5 -> "3.5h", 48 -> "2d", 53 -> "2d 5h"
    """
    h = max(0.0, float(hours or 0.0))
    if h < 1:
        return f"{round(h * 60)}m"
    if h < 24:
        return f"{h:.1f}h"
    days = int(h // 24)
    remain = round(h % 24)
    if remain == 24:
        days, remain = days + 1, 0
    if remain == 0:
        return f"{days}d"
    return f"{days}d {remain}h"


# -------------------- messaging links --------------------

def normalize_phone(phone: Optional[str], country_code: Optional[str] = None) -> str:
    """
    "0712 345-678" -> "+254712345678". Empty in, empty out.
    """
    cleaned = _PHONE_NOISE.sub("", phone or "")
    if not cleaned:
        return ""
    if cleaned.startswith("0"):
        cleaned = (country_code or settings.default_country_code) + cleaned[1:]
    if not cleaned.startswith("+"):
        cleaned = "+" + cleaned
    return cleaned


def get_whatsapp_link(phone: Optional[str], message: str) -> Optional[str]:
    number = normalize_phone(phone)
    if not number:
        return None
    return f"https://wa.me/{number.lstrip('+')}?text={quote(message, safe=URI_COMPONENT_SAFE)}"


def get_sms_link(phone: Optional[str], message: str) -> Optional[str]:
    number = normalize_phone(phone)
    if not number:
        return None
    return f"sms:{number}?body={quote(message, safe=URI_COMPONENT_SAFE)}"


# -------------------- templates --------------------

def render_merge_tags(text: str, context: dict[str, str]) -> str:
    if not text:
        return text

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(context.get(key, match.group(0)))

    return TAG_PATTERN.sub(_replace, text)


def first_name(full_name: Optional[str], default: str = "Tenant") -> str:
    parts = (full_name or "").split()
    return parts[0] if parts else default
