from decimal import Decimal
from unittest.mock import MagicMock

from roombill.models.meter_reading import MeterReadingInput, RoomInstanceMeterReading
from roombill.models.room import FixedCost, MeteredCost
from roombill.services.meter_reading_service import MeterReadingService, merge_costs, readings_to_input


def _electricity(**kwargs) -> MeteredCost:
    return MeteredCost(id=1, room_id=1, name="Electricity", unit_price=3500, unit="kWh", **kwargs)


class TestMergeCosts:
    def test_override_replaces_both_readings(self):
        cost = _electricity(meter_reading=Decimal(50), last_meter_reading=Decimal(40))
        override = RoomInstanceMeterReading(
            room_instance_id=7, room_cost_id=1, meter_reading=Decimal(125), last_meter_reading=Decimal(100)
        )
        merged = merge_costs([cost], [override])
        assert merged[0].meter_reading == Decimal(125)
        assert merged[0].last_meter_reading == Decimal(100)

    def test_override_with_null_reading_wins(self):
        cost = _electricity(meter_reading=Decimal(50), last_meter_reading=Decimal(40))
        override = RoomInstanceMeterReading(room_instance_id=7, room_cost_id=1, meter_reading=Decimal(60))
        merged = merge_costs([cost], [override])
        assert merged[0].meter_reading == Decimal(60)
        assert merged[0].last_meter_reading is None

    def test_no_override_keeps_room_values(self):
        cost = _electricity(meter_reading=Decimal(50), last_meter_reading=Decimal(40))
        merged = merge_costs([cost], [])
        assert merged[0].meter_reading == Decimal(50)

    def test_returns_copies(self):
        cost = _electricity()
        override = RoomInstanceMeterReading(
            room_instance_id=7, room_cost_id=1, meter_reading=Decimal(5), last_meter_reading=Decimal(1)
        )
        merged = merge_costs([cost], [override])
        assert merged[0] is not cost
        assert cost.meter_reading is None

    def test_non_metered_cost_ignores_override(self):
        fixed = FixedCost(id=1, room_id=1, name="Internet", fixed_amount=100_000)
        override = RoomInstanceMeterReading(room_instance_id=7, room_cost_id=1, meter_reading=Decimal(5))
        merged = merge_costs([fixed], [override])
        assert merged == [fixed]


class TestReadingsToInput:
    def test_lists_metered_costs_missing_readings(self):
        missing = _electricity()
        complete = MeteredCost(
            id=2, room_id=1, name="Water", meter_reading=Decimal(2), last_meter_reading=Decimal(1)
        )
        inactive = MeteredCost(id=3, room_id=1, name="Gas", is_active=False)
        fixed = FixedCost(id=4, room_id=1, name="Internet", fixed_amount=1)
        assert readings_to_input([missing, complete, inactive, fixed]) == [missing]


class TestMeterReadingService:
    def setup_method(self):
        self.mock_repo = MagicMock()
        self.service = MeterReadingService(self.mock_repo)

    def test_upsert_reading(self):
        self.mock_repo.upsert.return_value = RoomInstanceMeterReading(
            id=1, room_instance_id=7, room_cost_id=1, meter_reading=Decimal(125), last_meter_reading=Decimal(100)
        )
        result = self.service.upsert_reading(7, 1, Decimal(125), Decimal(100))
        saved = self.mock_repo.upsert.call_args[0][0]
        assert saved.room_instance_id == 7
        assert saved.meter_reading == Decimal(125)
        assert result.id == 1

    def test_apply_inputs(self):
        self.service.apply_inputs(
            7,
            [
                MeterReadingInput(room_cost_id=1, current_reading=Decimal(125), last_reading=Decimal(100)),
                MeterReadingInput(room_cost_id=2, current_reading=Decimal(12), last_reading=Decimal(10)),
            ],
        )
        assert self.mock_repo.upsert.call_count == 2

    def test_merge_costs_reads_overrides(self):
        self.mock_repo.list_by_room_instance.return_value = [
            RoomInstanceMeterReading(
                room_instance_id=7, room_cost_id=1, meter_reading=Decimal(125), last_meter_reading=Decimal(100)
            )
        ]
        merged = self.service.merge_costs([_electricity()], 7)
        self.mock_repo.list_by_room_instance.assert_called_once_with(7)
        assert merged[0].has_readings
