# backend/propdash/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    metrics_version: str = "2026-10-01.v1"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Formatting / messaging ----
    currency_code: str = "KES"
    default_country_code: str = "254"

    # ---- SLA grading ----
    repeat_issue_window_days: int = 30

    sla_weight_acknowledgement: float = 0.25
    sla_weight_resolution: float = 0.30
    sla_weight_completion_rate: float = 0.30
    sla_weight_repeat_issues: float = 0.15

    # ---- Tenant risk ----
    risk_weight_payment_history: float = 0.30
    risk_weight_late_payments: float = 0.30
    risk_weight_amount_volatility: float = 0.10
    risk_weight_maintenance: float = 0.15
    risk_weight_occupancy_duration: float = 0.15

    late_payment_half_life_days: float = 90.0

    # ---- Vacancy prediction ----
    vacancy_weight_lease_end_proximity: float = 0.35
    vacancy_weight_late_rent_pattern: float = 0.25
    vacancy_weight_maintenance_frequency: float = 0.20
    vacancy_weight_payment_failures: float = 0.20

    vacancy_recent_payment_count: int = 12
    vacancy_maintenance_baseline_points: float = 2.0

    def sla_weights(self) -> dict[str, float]:
        return {
            "acknowledgement": float(self.sla_weight_acknowledgement),
            "resolution": float(self.sla_weight_resolution),
            "completion_rate": float(self.sla_weight_completion_rate),
            "repeat_issues": float(self.sla_weight_repeat_issues),
        }

    def risk_weights(self) -> dict[str, float]:
        return {
            "payment_history": float(self.risk_weight_payment_history),
            "late_payments": float(self.risk_weight_late_payments),
            "amount_volatility": float(self.risk_weight_amount_volatility),
            "maintenance": float(self.risk_weight_maintenance),
            "occupancy_duration": float(self.risk_weight_occupancy_duration),
        }

    def vacancy_weights(self) -> dict[str, float]:
        return {
            "lease_end_proximity": float(self.vacancy_weight_lease_end_proximity),
            "late_rent_pattern": float(self.vacancy_weight_late_rent_pattern),
            "maintenance_frequency": float(self.vacancy_weight_maintenance_frequency),
            "payment_failures": float(self.vacancy_weight_payment_failures),
        }

    def model_post_init(self, __context) -> None:
        # Each weight group must sum to 1.
        for name, weights in (
            ("sla", self.sla_weights()),
            ("risk", self.risk_weights()),
            ("vacancy", self.vacancy_weights()),
        ):
            if any(w < 0 for w in weights.values()):
                raise ValueError(f"POLICY: negative {name} weight in {weights}")
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"POLICY: {name} weights must sum to 1.0 (got {total:.4f})")

        if float(self.late_payment_half_life_days) <= 0:
            raise ValueError("POLICY: late_payment_half_life_days must be > 0")


settings = Settings()
