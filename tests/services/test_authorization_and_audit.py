from datetime import date
from unittest.mock import MagicMock

import pytest

from roombill.exceptions import AuthorizationError
from roombill.models.audit_log import AuditEventType, AuditSource
from roombill.models.bill import Bill, BillItem, BillStatus
from roombill.models.rental import Rental
from roombill.models.room import Building
from roombill.services.audit_serializers import serialize_bill
from roombill.services.audit_service import AuditService
from roombill.services.authorization_service import AuthorizationService


class TestAuthorizationService:
    def setup_method(self):
        self.service = AuthorizationService()
        self.rental = Rental(id=1, owner_id=10, tenant_id=20, room_instance_id=1, contract_start_date=date(2024, 1, 1))
        self.building = Building(id=1, owner_id=10, name="Sunrise")

    def test_owner_can_manage(self):
        assert self.service.can_manage_rental(10, self.rental) is True
        assert self.service.can_manage_building(10, self.building) is True

    def test_tenant_cannot_manage(self):
        assert self.service.can_manage_rental(20, self.rental) is False

    def test_ensure_rental_raises(self):
        with pytest.raises(AuthorizationError, match="update bill"):
            self.service.ensure_can_manage_rental(20, self.rental, "Update bill")

    def test_ensure_building_raises(self):
        with pytest.raises(AuthorizationError):
            self.service.ensure_can_manage_building(99, self.building, "Generate bills")

    def test_ensure_passes_for_owner(self):
        self.service.ensure_can_manage_rental(10, self.rental, "Update bill")
        self.service.ensure_can_manage_building(10, self.building, "Generate bills")


def _audited_bill(**overrides) -> Bill:
    defaults = dict(
        id=4,
        uuid="01HXBILL",
        rental_id=2,
        room_instance_id=3,
        billing_period="2024-03",
        billing_month=3,
        billing_year=2024,
        period_start=date(2024, 3, 1),
        period_end=date(2024, 3, 31),
        total_amount=3_100_000,
        status=BillStatus.PENDING,
    )
    defaults.update(overrides)
    return Bill(**defaults)


class TestAuditService:
    def setup_method(self):
        self.mock_repo = MagicMock()
        self.mock_repo.create.side_effect = lambda entry: entry.model_copy(update={"id": 1})
        self.service = AuditService(self.mock_repo)

    def test_record_snapshots_bill(self):
        result = self.service.record(AuditEventType.BILL_CREATE, _audited_bill(), actor_id=10)

        created = self.mock_repo.create.call_args[0][0]
        assert created.event_type == "bill.create"
        assert created.entity_type == "bill"
        assert created.entity_id == 4
        assert created.entity_uuid == "01HXBILL"
        assert created.source == AuditSource.CLI
        assert created.new_state["total_amount"] == 3_100_000
        assert created.previous_state is None
        assert created.metadata == {}
        assert result.id == 1

    def test_batch_source(self):
        self.service.record(AuditEventType.BILL_GENERATE, _audited_bill(), source=AuditSource.BATCH)
        assert self.mock_repo.create.call_args[0][0].source == "batch"

    def test_delete_has_no_new_state(self):
        bill = _audited_bill()
        self.service.record(AuditEventType.BILL_DELETE, bill, previous_state=serialize_bill(bill))

        created = self.mock_repo.create.call_args[0][0]
        assert created.new_state is None
        assert created.previous_state["status"] == "pending"

    def test_record_raises(self):
        self.mock_repo.create.side_effect = RuntimeError("db down")
        with pytest.raises(RuntimeError):
            self.service.record(AuditEventType.BILL_PAID, _audited_bill())

    def test_safe_record_swallows_errors(self):
        self.mock_repo.create.side_effect = RuntimeError("db down")
        assert self.service.safe_record(AuditEventType.BILL_PAID, _audited_bill()) is None

    def test_history(self):
        self.mock_repo.list_by_entity.return_value = []
        assert self.service.history(4) == []
        self.mock_repo.list_by_entity.assert_called_once_with("bill", 4)


class TestSerializeBill:
    def test_json_safe(self):
        bill = Bill(
            id=1,
            uuid="u",
            rental_id=2,
            room_instance_id=3,
            billing_period="2024-03",
            billing_month=3,
            billing_year=2024,
            period_start=date(2024, 3, 1),
            period_end=date(2024, 3, 31),
            status=BillStatus.PENDING,
            due_date=date(2024, 4, 10),
            items=[BillItem(item_type="rent", item_name="Room rent", amount=100)],
        )
        data = serialize_bill(bill)
        assert data["status"] == "pending"
        assert data["due_date"] == "2024-04-10"
        assert data["items"][0]["quantity"] == "1"
        assert data["items"][0]["amount"] == 100
