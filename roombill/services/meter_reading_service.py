from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from roombill.models.meter_reading import MeterReadingInput, RoomInstanceMeterReading
from roombill.models.room import MeteredCost, RoomCost
from roombill.repositories.base import MeterReadingRepository

logger = logging.getLogger(__name__)


def merge_costs(
    room_costs: Iterable[RoomCost],
    overrides: Iterable[RoomInstanceMeterReading],
) -> list[RoomCost]:
    """Apply a room instance's meter readings on top of the room-level cost definitions.

    An override replaces both readings of its cost, including with ``None``;
    costs without an override keep the room-level values.  Returns copies.
    """
    by_cost_id = {reading.room_cost_id: reading for reading in overrides}
    merged: list[RoomCost] = []
    for cost in room_costs:
        override = by_cost_id.get(cost.id) if isinstance(cost, MeteredCost) else None
        if override is None:
            merged.append(cost.model_copy())
        else:
            merged.append(
                cost.model_copy(
                    update={
                        "meter_reading": override.meter_reading,
                        "last_meter_reading": override.last_meter_reading,
                    }
                )
            )
    return merged


def readings_to_input(room_costs: Iterable[RoomCost]) -> list[MeteredCost]:
    """Active metered costs that still lack a current or previous reading."""
    return [cost for cost in room_costs if isinstance(cost, MeteredCost) and cost.is_active and not cost.has_readings]


class MeterReadingService:
    def __init__(self, repo: MeterReadingRepository) -> None:
        self.repo = repo

    def upsert_reading(
        self,
        room_instance_id: int,
        room_cost_id: int,
        current_reading: Decimal | None,
        last_reading: Decimal | None,
    ) -> RoomInstanceMeterReading:
        result = self.repo.upsert(
            RoomInstanceMeterReading(
                room_instance_id=room_instance_id,
                room_cost_id=room_cost_id,
                meter_reading=current_reading,
                last_meter_reading=last_reading,
            )
        )
        logger.info(
            "Meter reading saved: instance=%s cost=%s current=%s last=%s",
            room_instance_id,
            room_cost_id,
            current_reading,
            last_reading,
        )
        return result

    def apply_inputs(self, room_instance_id: int, readings: Iterable[MeterReadingInput]) -> None:
        for reading in readings:
            self.upsert_reading(room_instance_id, reading.room_cost_id, reading.current_reading, reading.last_reading)

    def merge_costs(self, room_costs: Iterable[RoomCost], room_instance_id: int) -> list[RoomCost]:
        overrides = self.repo.list_by_room_instance(room_instance_id)
        result = merge_costs(room_costs, overrides)
        logger.debug("Merged %d meter overrides for instance=%s", len(overrides), room_instance_id)
        return result
