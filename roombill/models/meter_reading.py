from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class RoomInstanceMeterReading(BaseModel):
    id: int | None = None
    room_instance_id: int
    room_cost_id: int
    meter_reading: Decimal | None = None
    last_meter_reading: Decimal | None = None
    updated_at: datetime | None = None


class MeterReadingInput(BaseModel):
    """A reading pair submitted by the landlord for one metered cost."""

    room_cost_id: int
    current_reading: Decimal = Field(ge=0)
    last_reading: Decimal = Field(ge=0)
