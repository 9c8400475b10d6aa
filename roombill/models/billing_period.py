from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class BillingPeriod(BaseModel):
    billing_period: str  # 'YYYY-MM'
    billing_month: int
    billing_year: int
    period_start: date
    period_end: date

    @property
    def total_days(self) -> int:
        return (self.period_end - self.period_start).days + 1
