"""Billing period resolution and partial-period proration.

Everything here is pure: callers pass dates in and get values back.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

from roombill.constants import LOCAL_TZ
from roombill.models.billing_period import BillingPeriod

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


class Proration(BaseModel):
    effective_start: date
    effective_end: date
    total_days: int
    rental_days: int
    factor: Decimal

    @property
    def percent(self) -> int:
        """Factor as a whole percentage, for descriptions."""
        return int((self.factor * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole calendar days from ``start`` to ``end``; time of day is ignored."""
    return (_as_date(end) - _as_date(start)).days


def overlaps_period(
    period_start: date,
    period_end: date,
    contract_start: date | datetime,
    contract_end: date | datetime | None,
) -> bool:
    if _as_date(contract_start) > period_end:
        return False
    return contract_end is None or _as_date(contract_end) >= period_start


def calculate_proration(
    period_start: date | datetime,
    period_end: date | datetime,
    contract_start: date | datetime,
    contract_end: date | datetime | None,
) -> Proration:
    """Fraction of the billing window covered by the contract.

    The contract must overlap the window; filter with ``overlaps_period`` first.
    """
    period_start = _as_date(period_start)
    period_end = _as_date(period_end)
    effective_start = max(_as_date(contract_start), period_start)
    effective_end = min(_as_date(contract_end), period_end) if contract_end is not None else period_end

    total_days = days_between(period_start, period_end) + 1
    rental_days = days_between(effective_start, effective_end) + 1
    if total_days <= 0:
        raise ValueError(f"Billing period ends before it starts: {period_start} > {period_end}")
    if rental_days <= 0:
        raise ValueError(f"Contract does not overlap billing period {period_start}..{period_end}")

    return Proration(
        effective_start=effective_start,
        effective_end=effective_end,
        total_days=total_days,
        rental_days=rental_days,
        factor=Decimal(rental_days) / Decimal(total_days),
    )


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_month(today: date) -> tuple[int, int]:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def parse_billing_period(billing_period: str) -> tuple[int, int]:
    """Split 'YYYY-MM' into (year, month)."""
    match = _PERIOD_RE.match(billing_period or "")
    if match is None:
        raise ValueError(f"Invalid billing period '{billing_period}', expected YYYY-MM")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid billing period '{billing_period}', month out of range")
    return year, month


def resolve_billing_period(
    billing_period: str | None = None,
    *,
    period_start: date | None = None,
    period_end: date | None = None,
    now: datetime | None = None,
) -> BillingPeriod:
    """Resolve the period to bill.

    Defaults to the previous calendar month in the local timezone.  Explicit
    ``period_start`` / ``period_end`` override the month bounds.
    """
    if billing_period:
        year, month = parse_billing_period(billing_period)
    else:
        current = now or datetime.now(LOCAL_TZ)
        if current.tzinfo is not None:
            current = current.astimezone(LOCAL_TZ)
        year, month = previous_month(current.date())

    start, end = month_bounds(year, month)
    start = period_start or start
    end = period_end or end
    if end < start:
        raise ValueError(f"Billing period ends before it starts: {start} > {end}")

    return BillingPeriod(
        billing_period=f"{year:04d}-{month:02d}",
        billing_month=month,
        billing_year=year,
        period_start=start,
        period_end=end,
    )
