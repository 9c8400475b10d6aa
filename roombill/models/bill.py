from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class BillStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"


class BillItem(BaseModel):
    id: int | None = None
    bill_id: int | None = None
    item_type: str
    item_name: str
    description: str = ""
    quantity: Decimal = Decimal(1)
    unit_price: int = 0
    amount: int = 0
    currency: str = "VND"
    notes: str = ""
    sort_order: int = 0


class Bill(BaseModel):
    id: int | None = None
    uuid: str = ""
    rental_id: int
    room_instance_id: int
    billing_period: str  # 'YYYY-MM'
    billing_month: int
    billing_year: int
    period_start: date
    period_end: date
    rental_start_date: date | None = None
    rental_end_date: date | None = None
    occupancy_count: int = 1
    subtotal: int = 0
    discount_amount: int = 0
    tax_amount: int = 0
    total_amount: int = 0
    paid_amount: int = 0
    remaining_amount: int = 0
    status: BillStatus = BillStatus.DRAFT
    due_date: date | None = None
    paid_date: datetime | None = None
    notes: str = ""
    is_auto_generated: bool = False
    requires_meter_data: bool = False
    items: list[BillItem] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == BillStatus.PAID

    def apply_adjustments(self) -> None:
        """Recompute total and remaining from subtotal, discount, tax and payments."""
        self.total_amount = self.subtotal - self.discount_amount + self.tax_amount
        self.remaining_amount = self.total_amount - self.paid_amount

    def apply_totals(self) -> None:
        """Recompute subtotal from the items, then total and remaining."""
        self.subtotal = sum(item.amount for item in self.items)
        self.apply_adjustments()


class BillQuery(BaseModel):
    building_id: int | None = None
    room_instance_id: int | None = None
    rental_id: int | None = None
    billing_period: str | None = None
    billing_month: int | None = None
    billing_year: int | None = None
    status: BillStatus | None = None


class BillUpdate(BaseModel):
    """Editable bill fields; ``None`` leaves the field unchanged."""

    discount_amount: int | None = None
    tax_amount: int | None = None
    due_date: date | None = None
    notes: str | None = None
