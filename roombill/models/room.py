from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class CostType(str, Enum):
    FIXED = "fixed"
    PER_PERSON = "per_person"
    METERED = "metered"


class CostCategory(str, Enum):
    UTILITY = "utility"
    SERVICE = "service"
    PARKING = "parking"
    MAINTENANCE = "maintenance"


class Building(BaseModel):
    id: int | None = None
    owner_id: int
    name: str
    address: str = ""
    created_at: datetime | None = None


class Room(BaseModel):
    id: int | None = None
    building_id: int
    name: str
    created_at: datetime | None = None


class RoomInstance(BaseModel):
    id: int | None = None
    room_id: int
    room_number: str
    is_active: bool = True
    # Denormalised from the parent room/building when read.
    room_name: str = ""
    building_id: int | None = None

    @property
    def display_name(self) -> str:
        if self.room_name:
            return f"{self.room_name} - {self.room_number}"
        return self.room_number


class RoomPricing(BaseModel):
    id: int | None = None
    room_id: int
    base_price_monthly: int = 0
    deposit_amount: int = 0
    currency: str = "VND"


class _RoomCostBase(BaseModel):
    id: int | None = None
    room_id: int
    name: str
    category: CostCategory = CostCategory.UTILITY
    currency: str = "VND"
    is_active: bool = True
    notes: str = ""


class FixedCost(_RoomCostBase):
    cost_type: Literal["fixed"] = "fixed"
    fixed_amount: int = 0


class PerPersonCost(_RoomCostBase):
    cost_type: Literal["per_person"] = "per_person"
    per_person_amount: int = 0


class MeteredCost(_RoomCostBase):
    cost_type: Literal["metered"] = "metered"
    unit_price: int = 0
    unit: str = ""
    meter_reading: Decimal | None = None
    last_meter_reading: Decimal | None = None

    @property
    def has_readings(self) -> bool:
        return self.meter_reading is not None and self.last_meter_reading is not None


RoomCost = Annotated[Union[FixedCost, PerPersonCost, MeteredCost], Field(discriminator="cost_type")]
