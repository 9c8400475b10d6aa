from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class NotificationType:
    BILL = "bill"


class BillNotification(BaseModel):
    """Payload handed to the notifier when a bill becomes payable."""

    tenant_id: int
    month: int
    year: int
    room_name: str
    amount: int
    currency: str = "VND"
    bill_id: int
    due_date: date | None = None
    landlord_name: str = ""


class Notification(BaseModel):
    id: int | None = None
    uuid: str = ""
    user_id: int
    notification_type: str
    title: str
    message: str
    data: dict = {}
    is_read: bool = False
    created_at: datetime | None = None
