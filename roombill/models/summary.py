from __future__ import annotations

from pydantic import BaseModel

from roombill.models.bill import BillItem
from roombill.models.room import RoomCost


class BatchGenerationSummary(BaseModel):
    message: str
    building_id: int
    billing_period: str
    bills_created: int = 0
    bills_existed: int = 0
    bills_skipped: int = 0
    bills_failed: int = 0


class RoomBillPreview(BaseModel):
    room_instance_id: int
    room_number: str
    room_name: str
    rental_id: int
    tenant_name: str = ""
    occupancy_count: int = 1
    calculated_items: list[BillItem] = []
    calculated_total: int = 0
    meter_costs_to_input: list[RoomCost] = []


class BuildingBillPreview(BaseModel):
    building_id: int
    building_name: str
    billing_period: str
    room_bills: list[RoomBillPreview] = []
    total_building_amount: int = 0
    total_rooms: int = 0
    rooms_needing_meter_data: int = 0
