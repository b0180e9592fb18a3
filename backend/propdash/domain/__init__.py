# backend/propdash/domain/__init__.py
from .maintenance_sla import calculate_request_sla, calculate_sla_summary, calculate_staff_performance
from .formatting import get_sms_link, get_whatsapp_link
from .rent_chasing import generate_chasing_summary
from .tenant_risk import calculate_all_tenant_risk_scores
from .vacancy_prediction import predict_all_vacancies

__all__ = [
    "calculate_request_sla",
    "calculate_staff_performance",
    "calculate_sla_summary",
    "calculate_all_tenant_risk_scores",
    "predict_all_vacancies",
    "generate_chasing_summary",
    "get_whatsapp_link",
    "get_sms_link",
]
