from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel


class RentalStatus(str, Enum):
    ACTIVE = "active"
    PENDING_RENEWAL = "pending_renewal"
    TERMINATED = "terminated"
    EXPIRED = "expired"


class Rental(BaseModel):
    id: int | None = None
    owner_id: int
    tenant_id: int
    room_instance_id: int
    contract_start_date: date
    contract_end_date: date | None = None
    monthly_rent: int = 0
    status: str = RentalStatus.ACTIVE.value
    created_at: datetime | None = None
