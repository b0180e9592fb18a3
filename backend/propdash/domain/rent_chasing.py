# backend/propdash/domain/rent_chasing.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Optional

from .bands import Band, band_for, band_table
from .formatting import (
    days_overdue,
    first_name,
    format_currency,
    get_sms_link,
    get_whatsapp_link,
    render_merge_tags,
    resolve_now,
)
from .grouping import group_payments_by_tenant
from .records import PAYMENT_UNPAID_STATUSES, Payment, Tenant

log = logging.getLogger(__name__)

ESCALATION_LEVELS = ("upcoming", "friendly", "firm", "urgent", "final")

# min_value is days overdue (negative = days before the due date).
ESCALATION_CONFIG = band_table(
    Band("upcoming", "Upcoming", "#6B7280", "bg-gray-100 text-gray-800", -3,
         {"days_range": "Due in 3 days", "icon": "clock"}),
    Band("friendly", "Friendly Reminder", "#3B82F6", "bg-blue-100 text-blue-800", 1,
         {"days_range": "1-3 days overdue", "icon": "message"}),
    Band("firm", "Firm Notice", "#F59E0B", "bg-amber-100 text-amber-800", 4,
         {"days_range": "4-7 days overdue", "icon": "alert"}),
    Band("urgent", "Urgent", "#F97316", "bg-orange-100 text-orange-800", 8,
         {"days_range": "8-14 days overdue", "icon": "warning"}),
    Band("final", "Final Notice", "#EF4444", "bg-red-100 text-red-800", 15,
         {"days_range": "15+ days overdue", "icon": "alert-triangle"}),
)

ESCALATION_THRESHOLDS = MappingProxyType({k: int(b.min_value) for k, b in ESCALATION_CONFIG.items()})


@dataclass(frozen=True)
class MessageCopy:
    subject: str
    channel: str  # sms|whatsapp
    sms: str
    whatsapp: str
    sms_swahili: str
    whatsapp_swahili: str


MESSAGE_TEMPLATES = MappingProxyType(
    {
        "upcoming": MessageCopy(
            subject="Rent Payment Reminder",
            channel="sms",
            sms=(
                "Hi {{first_name}}, this is a friendly reminder that your rent of {{amount}} for unit {{unit}} "
                "is due on {{due_date}} (in {{days}} day(s)). Please ensure timely payment. Thank you!"
            ),
            whatsapp=(
                "Hi {{first_name}} 👋\n\nThis is a friendly reminder that your rent of *{{amount}}* for unit "
                "*{{unit}}* is due on *{{due_date}}* (in {{days}} day(s)).\n\n"
                "Please ensure timely payment to avoid any inconvenience.\n\nThank you! 🙏"
            ),
            sms_swahili=(
                "Habari {{first_name}}, hii ni kukumbushwa kwamba kodi yako ya {{amount}} ya nyumba {{unit}} "
                "inapaswa kulipwa tarehe {{due_date}} (ndani ya siku {{days}}). "
                "Tafadhali hakikisha malipo kwa wakati. Asante!"
            ),
            whatsapp_swahili=(
                "Habari {{first_name}} 👋\n\nHii ni kukumbushwa kwamba kodi yako ya *{{amount}}* ya nyumba "
                "*{{unit}}* inapaswa kulipwa tarehe *{{due_date}}* (ndani ya siku {{days}}).\n\n"
                "Tafadhali hakikisha malipo kwa wakati.\n\nAsante! 🙏"
            ),
        ),
        "friendly": MessageCopy(
            subject="Rent Payment Overdue - Friendly Reminder",
            channel="sms",
            sms=(
                "Hi {{first_name}}, we noticed your rent of {{amount}} for unit {{unit}} (due {{due_date}}) is "
                "{{days}} day(s) overdue. Kindly make the payment at your earliest convenience. "
                "If already paid, please disregard. Thank you."
            ),
            whatsapp=(
                "Hi {{first_name}} 👋\n\nWe noticed your rent payment of *{{amount}}* for unit *{{unit}}* "
                "(due {{due_date}}) is *{{days}} day(s) overdue*.\n\n"
                "Kindly make the payment at your earliest convenience. "
                "If you've already paid, please disregard this message.\n\nThank you 🙏"
            ),
            sms_swahili=(
                "Habari {{first_name}}, tumeona kodi yako ya {{amount}} ya nyumba {{unit}} (tarehe {{due_date}}) "
                "imechelewa kwa siku {{days}}. Tafadhali fanya malipo haraka iwezekanavyo. "
                "Ikiwa tayari umelipa, tafadhali puuza ujumbe huu. Asante."
            ),
            whatsapp_swahili=(
                "Habari {{first_name}} 👋\n\nTumeona malipo ya kodi yako ya *{{amount}}* ya nyumba *{{unit}}* "
                "(tarehe {{due_date}}) yamechelewa kwa *siku {{days}}*.\n\n"
                "Tafadhali fanya malipo haraka iwezekanavyo. Ikiwa tayari umelipa, puuza ujumbe huu.\n\nAsante 🙏"
            ),
        ),
        "firm": MessageCopy(
            subject="Rent Payment Overdue - Second Notice",
            channel="whatsapp",
            sms=(
                "Dear {{first_name}}, your rent of {{amount}} for unit {{unit}} is now {{days}} days overdue. "
                "This is a second reminder. Please settle the outstanding amount immediately to avoid further "
                "action. Contact us if you need to discuss a payment arrangement."
            ),
            whatsapp=(
                "Dear {{first_name}},\n\nYour rent payment of *{{amount}}* for unit *{{unit}}* is now "
                "*{{days}} days overdue*.\n\nThis is a second reminder. Please settle the outstanding amount "
                "immediately to avoid further action.\n\nIf you're experiencing difficulties, please contact us "
                "to discuss a payment arrangement.\n\nRegards,\nProperty Management"
            ),
            sms_swahili=(
                "Mpendwa {{first_name}}, kodi yako ya {{amount}} ya nyumba {{unit}} sasa imechelewa kwa siku "
                "{{days}}. Hii ni ilani ya pili. Tafadhali lipa kiasi kilichobaki mara moja ili kuepuka hatua "
                "zaidi. Wasiliana nasi ikiwa unahitaji kujadili mpango wa malipo."
            ),
            whatsapp_swahili=(
                "Mpendwa {{first_name}},\n\nMalipo ya kodi yako ya *{{amount}}* ya nyumba *{{unit}}* sasa "
                "yamechelewa kwa *siku {{days}}*.\n\nHii ni ilani ya pili. Tafadhali lipa kiasi kilichobaki mara "
                "moja ili kuepuka hatua zaidi.\n\nIkiwa una changamoto, tafadhali wasiliana nasi kujadili mpango "
                "wa malipo.\n\nHeshima,\nUsimamizi wa Mali"
            ),
        ),
        "urgent": MessageCopy(
            subject="Urgent: Rent Payment Seriously Overdue",
            channel="whatsapp",
            sms=(
                "URGENT: {{first_name}}, your rent of {{amount}} for unit {{unit}} is {{days}} days overdue. "
                "Immediate payment is required. Failure to pay may result in formal action. "
                "Please contact the property office urgently."
            ),
            whatsapp=(
                "⚠️ *URGENT NOTICE*\n\nDear {{first_name}},\n\nYour rent payment of *{{amount}}* for unit "
                "*{{unit}}* is now *{{days}} days overdue*.\n\n*Immediate payment is required.* Continued "
                "non-payment may result in formal action as per your lease agreement.\n\nPlease contact the "
                "property office urgently to resolve this matter.\n\nRegards,\nProperty Management"
            ),
            sms_swahili=(
                "HARAKA: {{first_name}}, kodi yako ya {{amount}} ya nyumba {{unit}} imechelewa kwa siku {{days}}. "
                "Malipo ya haraka yanahitajika. Kutolipa kunaweza kusababisha hatua rasmi. "
                "Tafadhali wasiliana na ofisi ya mali haraka."
            ),
            whatsapp_swahili=(
                "⚠️ *ILANI YA HARAKA*\n\nMpendwa {{first_name}},\n\nMalipo ya kodi yako ya *{{amount}}* ya nyumba "
                "*{{unit}}* sasa yamechelewa kwa *siku {{days}}*.\n\n*Malipo ya haraka yanahitajika.* Kuendelea "
                "kutolipa kunaweza kusababisha hatua rasmi kwa mujibu wa mkataba wako.\n\nTafadhali wasiliana na "
                "ofisi ya mali haraka.\n\nHeshima,\nUsimamizi wa Mali"
            ),
        ),
        "final": MessageCopy(
            subject="Final Notice: Rent Payment Required",
            channel="whatsapp",
            sms=(
                "FINAL NOTICE: {{first_name}}, your rent of {{amount}} for unit {{unit}} is {{days}} days overdue. "
                "This is the final notice before formal proceedings begin. "
                "Please pay immediately or contact management today."
            ),
            whatsapp=(
                "🔴 *FINAL NOTICE*\n\nDear {{first_name}},\n\nYour rent payment of *{{amount}}* for unit "
                "*{{unit}}* is now *{{days}} days overdue*.\n\n*This is the final notice before formal proceedings "
                "are initiated.* Please make immediate payment or contact management today to discuss "
                "resolution.\n\nFailure to respond will result in action as per your lease terms.\n\n"
                "Regards,\nProperty Management"
            ),
            sms_swahili=(
                "ILANI YA MWISHO: {{first_name}}, kodi yako ya {{amount}} ya nyumba {{unit}} imechelewa kwa siku "
                "{{days}}. Hii ni ilani ya mwisho kabla ya hatua rasmi. "
                "Tafadhali lipa mara moja au wasiliana na usimamizi leo."
            ),
            whatsapp_swahili=(
                "🔴 *ILANI YA MWISHO*\n\nMpendwa {{first_name}},\n\nMalipo ya kodi yako ya *{{amount}}* ya nyumba "
                "*{{unit}}* sasa yamechelewa kwa *siku {{days}}*.\n\n*Hii ni ilani ya mwisho kabla ya hatua rasmi "
                "kuanza.* Tafadhali fanya malipo mara moja au wasiliana na usimamizi leo kujadili suluhu.\n\n"
                "Kutoshughulikia kutasababisha hatua kwa mujibu wa masharti ya mkataba wako.\n\n"
                "Heshima,\nUsimamizi wa Mali"
            ),
        ),
    }
)


@dataclass(frozen=True)
class MessageTemplate:
    subject: str
    sms: str
    whatsapp: str
    sms_swahili: str
    whatsapp_swahili: str
    channel: str
    escalation: str


@dataclass(frozen=True)
class OverduePayment:
    payment_id: int
    amount: float
    due_date: datetime
    days_overdue: int
    payment_type: str


@dataclass(frozen=True)
class OverdueTenant:
    tenant_id: int
    tenant: Tenant
    tenant_name: str
    tenant_phone: str
    tenant_email: str
    unit_number: str
    property_name: str
    overdue_payments: list[OverduePayment]
    total_overdue: float
    max_days_overdue: int
    escalation: str
    suggested_message: MessageTemplate
    whatsapp_link: Optional[str]
    sms_link: Optional[str]


@dataclass(frozen=True)
class RentChasingSummary:
    total_overdue: int
    total_amount: float
    by_escalation: dict[str, int]
    tenants: list[OverdueTenant]


# -------------------- helpers --------------------

def get_escalation_level(days: int) -> str:
    """
    < 1 upcoming, 1-3 friendly, 4-7 firm, 8-14 urgent, 15+ final.
    Never decreases as days grows.
    """
    return band_for(days, ESCALATION_CONFIG).key


def get_escalation_color(level: str) -> str:
    return ESCALATION_CONFIG[level].color


def get_escalation_bg_class(level: str) -> str:
    return ESCALATION_CONFIG[level].bg_class


def generate_message(
    tenant_name: str,
    amount: float,
    days: int,
    unit_number: str,
    escalation: str,
    due_date: Optional[datetime] = None,
) -> MessageTemplate:
    """All four variants are always rendered; the caller picks one."""
    copy = MESSAGE_TEMPLATES[escalation]
    context = {
        "first_name": first_name(tenant_name),
        "amount": format_currency(amount),
        "unit": unit_number,
        "days": str(abs(int(days))),
        "due_date": due_date.strftime("%d %b %Y") if due_date else "",
    }
    return MessageTemplate(
        subject=copy.subject,
        sms=render_merge_tags(copy.sms, context),
        whatsapp=render_merge_tags(copy.whatsapp, context),
        sms_swahili=render_merge_tags(copy.sms_swahili, context),
        whatsapp_swahili=render_merge_tags(copy.whatsapp_swahili, context),
        channel=copy.channel,
        escalation=escalation,
    )


# -------------------- main --------------------

def analyze_tenant_overdue(
    tenant: Tenant,
    payments: Iterable[Payment],
    *,
    now: Optional[datetime] = None,
) -> Optional[OverdueTenant]:
    """
    Unpaid rent that is overdue or falls due within the upcoming window.
    None when there is nothing to chase.
    """
    ts = resolve_now(now)
    window_start = ESCALATION_THRESHOLDS["upcoming"]

    overdue: list[OverduePayment] = []
    for p in payments:
        if not p.is_rent or p.payment_status not in PAYMENT_UNPAID_STATUSES or p.due_date is None:
            continue
        days = days_overdue(p.due_date, ts)
        if days < window_start:
            continue
        overdue.append(
            OverduePayment(
                payment_id=p.id,
                amount=float(p.amount or 0.0),
                due_date=p.due_date,
                days_overdue=days,
                payment_type=p.payment_type,
            )
        )

    if not overdue:
        return None

    # Most overdue first
    overdue.sort(key=lambda o: (-o.days_overdue, o.payment_id))

    worst = overdue[0]
    total = float(sum(o.amount for o in overdue))
    escalation = get_escalation_level(worst.days_overdue)

    tenant_name = tenant.full_name or "Tenant"
    message = generate_message(
        tenant_name,
        total,
        worst.days_overdue,
        tenant.unit_number,
        escalation,
        due_date=worst.due_date,
    )

    return OverdueTenant(
        tenant_id=tenant.id,
        tenant=tenant,
        tenant_name=tenant_name,
        tenant_phone=tenant.phone,
        tenant_email=tenant.email,
        unit_number=tenant.unit_number,
        property_name=tenant.property_name,
        overdue_payments=overdue,
        total_overdue=total,
        max_days_overdue=worst.days_overdue,
        escalation=escalation,
        suggested_message=message,
        whatsapp_link=get_whatsapp_link(tenant.phone, message.whatsapp),
        sms_link=get_sms_link(tenant.phone, message.sms),
    )


def analyze_all_overdue(
    tenants: Iterable[Tenant],
    payments: Iterable[Payment],
    *,
    now: Optional[datetime] = None,
) -> list[OverdueTenant]:
    """Most overdue first, so final/urgent cases lead the triage list."""
    ts = resolve_now(now)
    tenants = list(tenants)
    by_tenant = group_payments_by_tenant(tenants, payments, engine="rent_chasing")

    out: list[OverdueTenant] = []
    seen: set[int] = set()
    for t in tenants:
        if t.id in seen:
            continue
        seen.add(t.id)
        item = analyze_tenant_overdue(t, by_tenant.get(t.id, []), now=ts)
        if item is not None:
            out.append(item)

    out.sort(key=lambda o: (-o.max_days_overdue, o.tenant_id))
    return out


def generate_chasing_summary(
    tenants: Iterable[Tenant],
    payments: Iterable[Payment],
    *,
    now: Optional[datetime] = None,
) -> RentChasingSummary:
    overdue = analyze_all_overdue(tenants, payments, now=now)

    by_escalation = {level: 0 for level in ESCALATION_LEVELS}
    total_amount = 0.0
    for item in overdue:
        by_escalation[item.escalation] += 1
        total_amount += item.total_overdue

    log.debug("rent chasing summary computed", extra={"engine": "rent_chasing", "count": len(overdue)})

    return RentChasingSummary(
        total_overdue=len(overdue),
        total_amount=float(total_amount),
        by_escalation=by_escalation,
        tenants=overdue,
    )
