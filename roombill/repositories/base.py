from abc import ABC, abstractmethod
from datetime import datetime

from roombill.models.audit_log import AuditLog
from roombill.models.bill import Bill, BillQuery
from roombill.models.meter_reading import RoomInstanceMeterReading
from roombill.models.notification import Notification
from roombill.models.rental import Rental
from roombill.models.room import Building, Room, RoomCost, RoomInstance, RoomPricing
from roombill.models.user import User


class BillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill) -> Bill:
        """Insert a bill with its items. Raises DuplicateBillError if the period exists."""
        ...

    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def get_by_uuid(self, uuid: str) -> Bill | None: ...

    @abstractmethod
    def get_by_rental_and_period(self, rental_id: int, billing_period: str) -> Bill | None: ...

    @abstractmethod
    def search(self, query: BillQuery) -> list[Bill]: ...

    @abstractmethod
    def update(self, bill: Bill) -> Bill:
        """Persist header fields and replace all items in one transaction."""
        ...

    @abstractmethod
    def mark_paid(self, bill_id: int, paid_date: datetime) -> None: ...

    @abstractmethod
    def delete(self, bill_id: int) -> None: ...


class RentalRepository(ABC):
    @abstractmethod
    def create(self, rental: Rental) -> Rental: ...

    @abstractmethod
    def get_by_id(self, rental_id: int) -> Rental | None: ...

    @abstractmethod
    def list_billable_for_room_instance(self, room_instance_id: int) -> list[Rental]: ...

    @abstractmethod
    def count_occupants(self, room_instance_id: int) -> int: ...


class RoomRepository(ABC):
    @abstractmethod
    def create_building(self, building: Building) -> Building: ...

    @abstractmethod
    def get_building(self, building_id: int) -> Building | None: ...

    @abstractmethod
    def create_room(self, room: Room) -> Room: ...

    @abstractmethod
    def get_room(self, room_id: int) -> Room | None: ...

    @abstractmethod
    def create_instance(self, instance: RoomInstance) -> RoomInstance: ...

    @abstractmethod
    def get_instance(self, instance_id: int) -> RoomInstance | None: ...

    @abstractmethod
    def list_instances_by_building(self, building_id: int, active_only: bool = True) -> list[RoomInstance]: ...

    @abstractmethod
    def create_cost(self, cost: RoomCost) -> RoomCost: ...

    @abstractmethod
    def list_costs(self, room_id: int, active_only: bool = True) -> list[RoomCost]: ...

    @abstractmethod
    def set_pricing(self, pricing: RoomPricing) -> RoomPricing: ...

    @abstractmethod
    def get_pricing(self, room_id: int) -> RoomPricing | None: ...


class MeterReadingRepository(ABC):
    @abstractmethod
    def upsert(self, reading: RoomInstanceMeterReading) -> RoomInstanceMeterReading: ...

    @abstractmethod
    def get(self, room_instance_id: int, room_cost_id: int) -> RoomInstanceMeterReading | None: ...

    @abstractmethod
    def list_by_room_instance(self, room_instance_id: int) -> list[RoomInstanceMeterReading]: ...


class UserRepository(ABC):
    @abstractmethod
    def create(self, user: User) -> User: ...

    @abstractmethod
    def get_by_id(self, user_id: int) -> User | None: ...


class NotificationRepository(ABC):
    @abstractmethod
    def create(self, notification: Notification) -> Notification: ...

    @abstractmethod
    def list_for_user(self, user_id: int) -> list[Notification]: ...


class AuditLogRepository(ABC):
    @abstractmethod
    def create(self, audit_log: AuditLog) -> AuditLog: ...

    @abstractmethod
    def list_by_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]: ...
