from decimal import Decimal

from roombill.models.audit_log import AuditLog
from roombill.models.meter_reading import RoomInstanceMeterReading
from roombill.models.notification import Notification
from roombill.models.user import User


class TestMeterReadingRepository:
    def test_upsert_inserts_then_updates(self, meter_repo, world):
        first = meter_repo.upsert(
            RoomInstanceMeterReading(
                room_instance_id=world.instance.id,
                room_cost_id=world.electricity.id,
                meter_reading=Decimal(125),
                last_meter_reading=Decimal(100),
            )
        )
        second = meter_repo.upsert(
            RoomInstanceMeterReading(
                room_instance_id=world.instance.id,
                room_cost_id=world.electricity.id,
                meter_reading=Decimal("140.5"),
                last_meter_reading=Decimal(125),
            )
        )

        assert second.id == first.id
        assert second.meter_reading == Decimal("140.5")
        assert second.last_meter_reading == Decimal(125)
        assert len(meter_repo.list_by_room_instance(world.instance.id)) == 1

    def test_null_readings_stored(self, meter_repo, world):
        stored = meter_repo.upsert(
            RoomInstanceMeterReading(room_instance_id=world.instance.id, room_cost_id=world.water.id)
        )
        assert stored.meter_reading is None
        assert stored.last_meter_reading is None

    def test_get_missing(self, meter_repo, world):
        assert meter_repo.get(world.instance.id, world.electricity.id) is None
        assert meter_repo.list_by_room_instance(world.empty_instance.id) == []

    def test_readings_scoped_per_instance(self, meter_repo, world):
        for instance in (world.instance, world.empty_instance):
            meter_repo.upsert(
                RoomInstanceMeterReading(
                    room_instance_id=instance.id,
                    room_cost_id=world.electricity.id,
                    meter_reading=Decimal(instance.id),
                    last_meter_reading=Decimal(0),
                )
            )
        assert meter_repo.get(world.empty_instance.id, world.electricity.id).meter_reading == Decimal(
            world.empty_instance.id
        )


class TestUserRepository:
    def test_create_and_get(self, user_repo):
        user = user_repo.create(User(first_name="Hoa", last_name="Le", email="hoa@example.com"))
        fetched = user_repo.get_by_id(user.id)
        assert fetched.full_name == "Hoa Le"
        assert fetched.email == "hoa@example.com"
        assert user_repo.get_by_id(999) is None


class TestNotificationRepository:
    def test_create_and_list(self, notification_repo, world):
        created = notification_repo.create(
            Notification(
                user_id=world.tenant.id,
                notification_type="bill",
                title="New bill",
                message="Your bill is ready",
                data={"billId": 1, "amount": 100},
            )
        )
        assert len(created.uuid) == 26
        assert created.data == {"billId": 1, "amount": 100}
        assert created.is_read is False

        listed = notification_repo.list_for_user(world.tenant.id)
        assert [n.id for n in listed] == [created.id]
        assert notification_repo.list_for_user(world.landlord.id) == []


class TestAuditLogRepository:
    def test_create_and_list(self, audit_repo):
        created = audit_repo.create(
            AuditLog(
                event_type="bill.update",
                actor_id=1,
                source="cli",
                entity_type="bill",
                entity_id=5,
                previous_state={"total_amount": 1},
                new_state={"total_amount": 2},
                metadata={"reason": "typo"},
            )
        )
        assert created.previous_state == {"total_amount": 1}
        assert created.metadata == {"reason": "typo"}

        logs = audit_repo.list_by_entity("bill", 5)
        assert [log.id for log in logs] == [created.id]
        assert audit_repo.list_by_entity("bill", 6) == []

    def test_null_states(self, audit_repo):
        created = audit_repo.create(AuditLog(event_type="bill.delete", source="cli", entity_type="bill"))
        assert created.previous_state is None
        assert created.new_state is None
