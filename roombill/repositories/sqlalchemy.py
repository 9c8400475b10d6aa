from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal

from pydantic import TypeAdapter
from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from ulid import ULID

from roombill.constants import BILLABLE_RENTAL_STATUSES, LOCAL_TZ
from roombill.exceptions import DuplicateBillError
from roombill.models.audit_log import AuditLog
from roombill.models.bill import Bill, BillItem, BillQuery, BillStatus
from roombill.models.meter_reading import RoomInstanceMeterReading
from roombill.models.notification import Notification
from roombill.models.rental import Rental
from roombill.models.room import (
    Building,
    FixedCost,
    MeteredCost,
    PerPersonCost,
    Room,
    RoomCost,
    RoomInstance,
    RoomPricing,
)
from roombill.models.user import User
from roombill.money import to_decimal, to_minor_units
from roombill.repositories.base import (
    AuditLogRepository,
    BillRepository,
    MeterReadingRepository,
    NotificationRepository,
    RentalRepository,
    RoomRepository,
    UserRepository,
)

_room_cost_adapter: TypeAdapter[RoomCost] = TypeAdapter(RoomCost)


def _now() -> datetime:
    return datetime.now(LOCAL_TZ)


def _date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _num(value: Decimal | None) -> str | None:
    """NUMERIC parameters go over the wire as strings; sqlite3 cannot bind Decimal."""
    return str(value) if value is not None else None


def _opt_decimal(value: object) -> Decimal | None:
    return None if value is None else to_decimal(value)


def _in_clause(prefix: str, values: tuple | list) -> tuple[str, dict]:
    placeholders = ", ".join(f":{prefix}{i}" for i in range(len(values)))
    params = {f"{prefix}{i}": value for i, value in enumerate(values)}
    return placeholders, params


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _insert_items(self, bill_id: int, items: list[BillItem]) -> None:
        for i, item in enumerate(items):
            self.conn.execute(
                text(
                    "INSERT INTO bill_items (bill_id, item_type, item_name, description, quantity, "
                    "unit_price, amount, currency, notes, sort_order) "
                    "VALUES (:bill_id, :item_type, :item_name, :description, :quantity, "
                    ":unit_price, :amount, :currency, :notes, :sort_order)"
                ),
                {
                    "bill_id": bill_id,
                    "item_type": item.item_type,
                    "item_name": item.item_name,
                    "description": item.description,
                    "quantity": _num(item.quantity),
                    "unit_price": item.unit_price,
                    "amount": item.amount,
                    "currency": item.currency,
                    "notes": item.notes,
                    "sort_order": i,
                },
            )

    def create(self, bill: Bill) -> Bill:
        bill_uuid = str(ULID())
        now = _now()
        try:
            result = self.conn.execute(
                text(
                    "INSERT INTO bills (uuid, rental_id, room_instance_id, billing_period, billing_month, "
                    "billing_year, period_start, period_end, rental_start_date, rental_end_date, "
                    "occupancy_count, subtotal, discount_amount, tax_amount, total_amount, paid_amount, "
                    "remaining_amount, status, due_date, notes, is_auto_generated, requires_meter_data, "
                    "created_at, updated_at) "
                    "VALUES (:uuid, :rental_id, :room_instance_id, :billing_period, :billing_month, "
                    ":billing_year, :period_start, :period_end, :rental_start_date, :rental_end_date, "
                    ":occupancy_count, :subtotal, :discount_amount, :tax_amount, :total_amount, :paid_amount, "
                    ":remaining_amount, :status, :due_date, :notes, :is_auto_generated, :requires_meter_data, "
                    ":created_at, :updated_at)"
                ),
                {
                    "uuid": bill_uuid,
                    "rental_id": bill.rental_id,
                    "room_instance_id": bill.room_instance_id,
                    "billing_period": bill.billing_period,
                    "billing_month": bill.billing_month,
                    "billing_year": bill.billing_year,
                    "period_start": _date(bill.period_start),
                    "period_end": _date(bill.period_end),
                    "rental_start_date": _date(bill.rental_start_date),
                    "rental_end_date": _date(bill.rental_end_date),
                    "occupancy_count": bill.occupancy_count,
                    "subtotal": bill.subtotal,
                    "discount_amount": bill.discount_amount,
                    "tax_amount": bill.tax_amount,
                    "total_amount": bill.total_amount,
                    "paid_amount": bill.paid_amount,
                    "remaining_amount": bill.remaining_amount,
                    "status": bill.status.value,
                    "due_date": _date(bill.due_date),
                    "notes": bill.notes,
                    "is_auto_generated": bill.is_auto_generated,
                    "requires_meter_data": bill.requires_meter_data,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            bill_id = result.lastrowid
            self._insert_items(bill_id, bill.items)
            self.conn.commit()
        except IntegrityError:
            self.conn.rollback()
            if self.get_by_rental_and_period(bill.rental_id, bill.billing_period) is not None:
                raise DuplicateBillError(bill.rental_id, bill.billing_period) from None
            raise
        created = self.get_by_id(bill_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return created

    @staticmethod
    def _build_item(row: RowMapping) -> BillItem:
        return BillItem(
            id=row["id"],
            bill_id=row["bill_id"],
            item_type=row["item_type"],
            item_name=row["item_name"],
            description=row["description"],
            quantity=to_decimal(row["quantity"]),
            unit_price=to_minor_units(row["unit_price"]),
            amount=to_minor_units(row["amount"]),
            currency=row["currency"],
            notes=row["notes"],
            sort_order=row["sort_order"],
        )

    @classmethod
    def _build_bill(cls, row: RowMapping, item_rows: list[RowMapping]) -> Bill:
        return Bill(
            id=row["id"],
            uuid=row["uuid"],
            rental_id=row["rental_id"],
            room_instance_id=row["room_instance_id"],
            billing_period=row["billing_period"],
            billing_month=row["billing_month"],
            billing_year=row["billing_year"],
            period_start=row["period_start"],
            period_end=row["period_end"],
            rental_start_date=row["rental_start_date"],
            rental_end_date=row["rental_end_date"],
            occupancy_count=row["occupancy_count"],
            subtotal=to_minor_units(row["subtotal"]),
            discount_amount=to_minor_units(row["discount_amount"]),
            tax_amount=to_minor_units(row["tax_amount"]),
            total_amount=to_minor_units(row["total_amount"]),
            paid_amount=to_minor_units(row["paid_amount"]),
            remaining_amount=to_minor_units(row["remaining_amount"]),
            status=BillStatus(row["status"]),
            due_date=row["due_date"],
            paid_date=row["paid_date"],
            notes=row["notes"],
            is_auto_generated=bool(row["is_auto_generated"]),
            requires_meter_data=bool(row["requires_meter_data"]),
            items=[cls._build_item(item_row) for item_row in item_rows],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _row_to_bill(self, row: RowMapping) -> Bill:
        items = (
            self.conn.execute(
                text("SELECT * FROM bill_items WHERE bill_id = :bill_id ORDER BY sort_order"),
                {"bill_id": row["id"]},
            )
            .mappings()
            .fetchall()
        )
        return self._build_bill(row, list(items))

    def _build_bills_from_rows(self, rows: list[RowMapping]) -> list[Bill]:
        if not rows:
            return []
        placeholders, params = _in_clause("id", [row["id"] for row in rows])
        all_items = (
            self.conn.execute(
                text(f"SELECT * FROM bill_items WHERE bill_id IN ({placeholders}) ORDER BY sort_order"),
                params,
            )
            .mappings()
            .fetchall()
        )
        items_by_bill: dict[int, list[RowMapping]] = {}
        for item_row in all_items:
            items_by_bill.setdefault(item_row["bill_id"], []).append(item_row)
        return [self._build_bill(row, items_by_bill.get(row["id"], [])) for row in rows]

    def get_by_id(self, bill_id: int) -> Bill | None:
        row = self.conn.execute(text("SELECT * FROM bills WHERE id = :id"), {"id": bill_id}).mappings().fetchone()
        if row is None:
            return None
        return self._row_to_bill(row)

    def get_by_uuid(self, uuid: str) -> Bill | None:
        row = (
            self.conn.execute(text("SELECT * FROM bills WHERE uuid = :uuid"), {"uuid": uuid}).mappings().fetchone()
        )
        if row is None:
            return None
        return self._row_to_bill(row)

    def get_by_rental_and_period(self, rental_id: int, billing_period: str) -> Bill | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE rental_id = :rental_id AND billing_period = :billing_period"),
                {"rental_id": rental_id, "billing_period": billing_period},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_bill(row)

    def search(self, query: BillQuery) -> list[Bill]:
        clauses: list[str] = []
        params: dict = {}
        if query.building_id is not None:
            clauses.append("r.building_id = :building_id")
            params["building_id"] = query.building_id
        if query.room_instance_id is not None:
            clauses.append("b.room_instance_id = :room_instance_id")
            params["room_instance_id"] = query.room_instance_id
        if query.rental_id is not None:
            clauses.append("b.rental_id = :rental_id")
            params["rental_id"] = query.rental_id
        if query.billing_period is not None:
            clauses.append("b.billing_period = :billing_period")
            params["billing_period"] = query.billing_period
        if query.billing_month is not None:
            clauses.append("b.billing_month = :billing_month")
            params["billing_month"] = query.billing_month
        if query.billing_year is not None:
            clauses.append("b.billing_year = :billing_year")
            params["billing_year"] = query.billing_year
        if query.status is not None:
            clauses.append("b.status = :status")
            params["status"] = query.status.value
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""
        rows = (
            self.conn.execute(
                text(
                    "SELECT b.* FROM bills b "
                    "JOIN room_instances ri ON ri.id = b.room_instance_id "
                    "JOIN rooms r ON r.id = ri.room_id "
                    f"{where}"
                    "ORDER BY b.billing_period DESC, ri.room_number"
                ),
                params,
            )
            .mappings()
            .fetchall()
        )
        return self._build_bills_from_rows(list(rows))

    def update(self, bill: Bill) -> Bill:
        if bill.id is None:
            raise ValueError("Cannot update bill without an id")
        # Bill row and items change together or not at all.
        try:
            self.conn.execute(
                text(
                    "UPDATE bills SET occupancy_count = :occupancy_count, subtotal = :subtotal, "
                    "discount_amount = :discount_amount, tax_amount = :tax_amount, total_amount = :total_amount, "
                    "remaining_amount = :remaining_amount, status = :status, due_date = :due_date, notes = :notes, "
                    "requires_meter_data = :requires_meter_data, updated_at = :updated_at WHERE id = :id"
                ),
                {
                    "occupancy_count": bill.occupancy_count,
                    "subtotal": bill.subtotal,
                    "discount_amount": bill.discount_amount,
                    "tax_amount": bill.tax_amount,
                    "total_amount": bill.total_amount,
                    "remaining_amount": bill.remaining_amount,
                    "status": bill.status.value,
                    "due_date": _date(bill.due_date),
                    "notes": bill.notes,
                    "requires_meter_data": bill.requires_meter_data,
                    "updated_at": _now(),
                    "id": bill.id,
                },
            )
            self.conn.execute(text("DELETE FROM bill_items WHERE bill_id = :bill_id"), {"bill_id": bill.id})
            self._insert_items(bill.id, bill.items)
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        result = self.get_by_id(bill.id)
        if result is None:
            raise RuntimeError(f"Failed to retrieve bill after update (id={bill.id})")
        return result

    def mark_paid(self, bill_id: int, paid_date: datetime) -> None:
        self.conn.execute(
            text(
                "UPDATE bills SET status = :status, paid_amount = total_amount, remaining_amount = 0, "
                "paid_date = :paid_date, updated_at = :updated_at WHERE id = :id"
            ),
            {"status": BillStatus.PAID.value, "paid_date": paid_date, "updated_at": _now(), "id": bill_id},
        )
        self.conn.commit()

    def delete(self, bill_id: int) -> None:
        try:
            self.conn.execute(text("DELETE FROM bill_items WHERE bill_id = :bill_id"), {"bill_id": bill_id})
            self.conn.execute(text("DELETE FROM bills WHERE id = :id"), {"id": bill_id})
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise


class SQLAlchemyRentalRepository(RentalRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_rental(row: RowMapping) -> Rental:
        return Rental(
            id=row["id"],
            owner_id=row["owner_id"],
            tenant_id=row["tenant_id"],
            room_instance_id=row["room_instance_id"],
            contract_start_date=row["contract_start_date"],
            contract_end_date=row["contract_end_date"],
            monthly_rent=to_minor_units(row["monthly_rent"]),
            status=row["status"],
            created_at=row["created_at"],
        )

    def create(self, rental: Rental) -> Rental:
        result = self.conn.execute(
            text(
                "INSERT INTO rentals (owner_id, tenant_id, room_instance_id, contract_start_date, "
                "contract_end_date, monthly_rent, status, created_at) "
                "VALUES (:owner_id, :tenant_id, :room_instance_id, :contract_start_date, "
                ":contract_end_date, :monthly_rent, :status, :created_at)"
            ),
            {
                "owner_id": rental.owner_id,
                "tenant_id": rental.tenant_id,
                "room_instance_id": rental.room_instance_id,
                "contract_start_date": _date(rental.contract_start_date),
                "contract_end_date": _date(rental.contract_end_date),
                "monthly_rent": rental.monthly_rent,
                "status": rental.status,
                "created_at": _now(),
            },
        )
        rental_id = result.lastrowid
        self.conn.commit()
        created = self.get_by_id(rental_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve rental after create (id={rental_id})")
        return created

    def get_by_id(self, rental_id: int) -> Rental | None:
        row = self.conn.execute(text("SELECT * FROM rentals WHERE id = :id"), {"id": rental_id}).mappings().fetchone()
        if row is None:
            return None
        return self._row_to_rental(row)

    def list_billable_for_room_instance(self, room_instance_id: int) -> list[Rental]:
        placeholders, params = _in_clause("status", BILLABLE_RENTAL_STATUSES)
        rows = (
            self.conn.execute(
                text(
                    "SELECT * FROM rentals WHERE room_instance_id = :room_instance_id "
                    f"AND status IN ({placeholders}) ORDER BY contract_start_date, id"
                ),
                {"room_instance_id": room_instance_id, **params},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_rental(row) for row in rows]

    def count_occupants(self, room_instance_id: int) -> int:
        placeholders, params = _in_clause("status", BILLABLE_RENTAL_STATUSES)
        count = self.conn.execute(
            text(
                "SELECT COUNT(*) FROM rentals WHERE room_instance_id = :room_instance_id "
                f"AND status IN ({placeholders})"
            ),
            {"room_instance_id": room_instance_id, **params},
        ).scalar()
        return int(count or 0)


class SQLAlchemyRoomRepository(RoomRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create_building(self, building: Building) -> Building:
        result = self.conn.execute(
            text(
                "INSERT INTO buildings (owner_id, name, address, created_at) "
                "VALUES (:owner_id, :name, :address, :created_at)"
            ),
            {"owner_id": building.owner_id, "name": building.name, "address": building.address, "created_at": _now()},
        )
        building_id = result.lastrowid
        self.conn.commit()
        created = self.get_building(building_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve building after create (id={building_id})")
        return created

    def get_building(self, building_id: int) -> Building | None:
        row = (
            self.conn.execute(text("SELECT * FROM buildings WHERE id = :id"), {"id": building_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return Building(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            address=row["address"],
            created_at=row["created_at"],
        )

    def create_room(self, room: Room) -> Room:
        result = self.conn.execute(
            text("INSERT INTO rooms (building_id, name, created_at) VALUES (:building_id, :name, :created_at)"),
            {"building_id": room.building_id, "name": room.name, "created_at": _now()},
        )
        room_id = result.lastrowid
        self.conn.commit()
        created = self.get_room(room_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve room after create (id={room_id})")
        return created

    def get_room(self, room_id: int) -> Room | None:
        row = self.conn.execute(text("SELECT * FROM rooms WHERE id = :id"), {"id": room_id}).mappings().fetchone()
        if row is None:
            return None
        return Room(id=row["id"], building_id=row["building_id"], name=row["name"], created_at=row["created_at"])

    @staticmethod
    def _row_to_instance(row: RowMapping) -> RoomInstance:
        return RoomInstance(
            id=row["id"],
            room_id=row["room_id"],
            room_number=row["room_number"],
            is_active=bool(row["is_active"]),
            room_name=row["room_name"],
            building_id=row["building_id"],
        )

    def create_instance(self, instance: RoomInstance) -> RoomInstance:
        result = self.conn.execute(
            text(
                "INSERT INTO room_instances (room_id, room_number, is_active, created_at) "
                "VALUES (:room_id, :room_number, :is_active, :created_at)"
            ),
            {
                "room_id": instance.room_id,
                "room_number": instance.room_number,
                "is_active": instance.is_active,
                "created_at": _now(),
            },
        )
        instance_id = result.lastrowid
        self.conn.commit()
        created = self.get_instance(instance_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve room instance after create (id={instance_id})")
        return created

    def get_instance(self, instance_id: int) -> RoomInstance | None:
        row = (
            self.conn.execute(
                text(
                    "SELECT ri.*, r.name AS room_name, r.building_id AS building_id FROM room_instances ri "
                    "JOIN rooms r ON r.id = ri.room_id WHERE ri.id = :id"
                ),
                {"id": instance_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_instance(row)

    def list_instances_by_building(self, building_id: int, active_only: bool = True) -> list[RoomInstance]:
        active_clause = "AND ri.is_active = :is_active " if active_only else ""
        rows = (
            self.conn.execute(
                text(
                    "SELECT ri.*, r.name AS room_name, r.building_id AS building_id FROM room_instances ri "
                    "JOIN rooms r ON r.id = ri.room_id "
                    f"WHERE r.building_id = :building_id {active_clause}"
                    "ORDER BY r.name, ri.room_number"
                ),
                {"building_id": building_id, "is_active": True},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_instance(row) for row in rows]

    def create_cost(self, cost: RoomCost) -> RoomCost:
        params = {
            "room_id": cost.room_id,
            "name": cost.name,
            "category": cost.category.value,
            "cost_type": cost.cost_type,
            "currency": cost.currency,
            "is_active": cost.is_active,
            "notes": cost.notes,
            "fixed_amount": cost.fixed_amount if isinstance(cost, FixedCost) else None,
            "per_person_amount": cost.per_person_amount if isinstance(cost, PerPersonCost) else None,
            "unit_price": cost.unit_price if isinstance(cost, MeteredCost) else None,
            "unit": cost.unit if isinstance(cost, MeteredCost) else "",
            "meter_reading": _num(cost.meter_reading) if isinstance(cost, MeteredCost) else None,
            "last_meter_reading": _num(cost.last_meter_reading) if isinstance(cost, MeteredCost) else None,
            "created_at": _now(),
        }
        result = self.conn.execute(
            text(
                "INSERT INTO room_costs (room_id, name, category, cost_type, currency, is_active, notes, "
                "fixed_amount, per_person_amount, unit_price, unit, meter_reading, last_meter_reading, created_at) "
                "VALUES (:room_id, :name, :category, :cost_type, :currency, :is_active, :notes, "
                ":fixed_amount, :per_person_amount, :unit_price, :unit, :meter_reading, :last_meter_reading, "
                ":created_at)"
            ),
            params,
        )
        cost_id = result.lastrowid
        self.conn.commit()
        row = self.conn.execute(text("SELECT * FROM room_costs WHERE id = :id"), {"id": cost_id}).mappings().fetchone()
        if row is None:
            raise RuntimeError(f"Failed to retrieve room cost after create (id={cost_id})")
        return self._row_to_cost(row)

    @staticmethod
    def _row_to_cost(row: RowMapping) -> RoomCost:
        data = {
            "id": row["id"],
            "room_id": row["room_id"],
            "name": row["name"],
            "category": row["category"],
            "cost_type": row["cost_type"],
            "currency": row["currency"],
            "is_active": bool(row["is_active"]),
            "notes": row["notes"],
        }
        if row["cost_type"] == "fixed":
            data["fixed_amount"] = to_minor_units(row["fixed_amount"])
        elif row["cost_type"] == "per_person":
            data["per_person_amount"] = to_minor_units(row["per_person_amount"])
        else:
            data["unit_price"] = to_minor_units(row["unit_price"])
            data["unit"] = row["unit"]
            data["meter_reading"] = _opt_decimal(row["meter_reading"])
            data["last_meter_reading"] = _opt_decimal(row["last_meter_reading"])
        return _room_cost_adapter.validate_python(data)

    def list_costs(self, room_id: int, active_only: bool = True) -> list[RoomCost]:
        active_clause = " AND is_active = :is_active" if active_only else ""
        rows = (
            self.conn.execute(
                text(f"SELECT * FROM room_costs WHERE room_id = :room_id{active_clause} ORDER BY id"),
                {"room_id": room_id, "is_active": True},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_cost(row) for row in rows]

    def set_pricing(self, pricing: RoomPricing) -> RoomPricing:
        params = {
            "room_id": pricing.room_id,
            "base_price_monthly": pricing.base_price_monthly,
            "deposit_amount": pricing.deposit_amount,
            "currency": pricing.currency,
        }
        result = self.conn.execute(
            text(
                "UPDATE room_pricing SET base_price_monthly = :base_price_monthly, "
                "deposit_amount = :deposit_amount, currency = :currency WHERE room_id = :room_id"
            ),
            params,
        )
        if result.rowcount == 0:
            self.conn.execute(
                text(
                    "INSERT INTO room_pricing (room_id, base_price_monthly, deposit_amount, currency) "
                    "VALUES (:room_id, :base_price_monthly, :deposit_amount, :currency)"
                ),
                params,
            )
        self.conn.commit()
        stored = self.get_pricing(pricing.room_id)
        if stored is None:
            raise RuntimeError(f"Failed to retrieve pricing after save (room_id={pricing.room_id})")
        return stored

    def get_pricing(self, room_id: int) -> RoomPricing | None:
        row = (
            self.conn.execute(text("SELECT * FROM room_pricing WHERE room_id = :room_id"), {"room_id": room_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return RoomPricing(
            id=row["id"],
            room_id=row["room_id"],
            base_price_monthly=to_minor_units(row["base_price_monthly"]),
            deposit_amount=to_minor_units(row["deposit_amount"]),
            currency=row["currency"],
        )


class SQLAlchemyMeterReadingRepository(MeterReadingRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_reading(row: RowMapping) -> RoomInstanceMeterReading:
        return RoomInstanceMeterReading(
            id=row["id"],
            room_instance_id=row["room_instance_id"],
            room_cost_id=row["room_cost_id"],
            meter_reading=_opt_decimal(row["meter_reading"]),
            last_meter_reading=_opt_decimal(row["last_meter_reading"]),
            updated_at=row["updated_at"],
        )

    def _update(self, params: dict) -> int:
        result = self.conn.execute(
            text(
                "UPDATE room_instance_meter_readings SET meter_reading = :meter_reading, "
                "last_meter_reading = :last_meter_reading, updated_at = :updated_at "
                "WHERE room_instance_id = :room_instance_id AND room_cost_id = :room_cost_id"
            ),
            params,
        )
        return result.rowcount

    def upsert(self, reading: RoomInstanceMeterReading) -> RoomInstanceMeterReading:
        params = {
            "room_instance_id": reading.room_instance_id,
            "room_cost_id": reading.room_cost_id,
            "meter_reading": _num(reading.meter_reading),
            "last_meter_reading": _num(reading.last_meter_reading),
            "updated_at": _now(),
        }
        if self._update(params) == 0:
            try:
                self.conn.execute(
                    text(
                        "INSERT INTO room_instance_meter_readings (room_instance_id, room_cost_id, "
                        "meter_reading, last_meter_reading, updated_at) "
                        "VALUES (:room_instance_id, :room_cost_id, :meter_reading, :last_meter_reading, :updated_at)"
                    ),
                    params,
                )
            except IntegrityError:
                # Lost the insert race to a concurrent upsert; apply ours on top.
                self.conn.rollback()
                self._update(params)
        self.conn.commit()
        stored = self.get(reading.room_instance_id, reading.room_cost_id)
        if stored is None:
            raise RuntimeError(
                f"Failed to retrieve meter reading after upsert "
                f"(room_instance_id={reading.room_instance_id}, room_cost_id={reading.room_cost_id})"
            )
        return stored

    def get(self, room_instance_id: int, room_cost_id: int) -> RoomInstanceMeterReading | None:
        row = (
            self.conn.execute(
                text(
                    "SELECT * FROM room_instance_meter_readings "
                    "WHERE room_instance_id = :room_instance_id AND room_cost_id = :room_cost_id"
                ),
                {"room_instance_id": room_instance_id, "room_cost_id": room_cost_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._row_to_reading(row)

    def list_by_room_instance(self, room_instance_id: int) -> list[RoomInstanceMeterReading]:
        rows = (
            self.conn.execute(
                text(
                    "SELECT * FROM room_instance_meter_readings "
                    "WHERE room_instance_id = :room_instance_id ORDER BY room_cost_id"
                ),
                {"room_instance_id": room_instance_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_reading(row) for row in rows]


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, user: User) -> User:
        result = self.conn.execute(
            text(
                "INSERT INTO users (first_name, last_name, email, created_at) "
                "VALUES (:first_name, :last_name, :email, :created_at)"
            ),
            {"first_name": user.first_name, "last_name": user.last_name, "email": user.email, "created_at": _now()},
        )
        user_id = result.lastrowid
        self.conn.commit()
        created = self.get_by_id(user_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve user after create (id={user_id})")
        return created

    def get_by_id(self, user_id: int) -> User | None:
        row = self.conn.execute(text("SELECT * FROM users WHERE id = :id"), {"id": user_id}).mappings().fetchone()
        if row is None:
            return None
        return User(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row["email"],
            created_at=row["created_at"],
        )


class SQLAlchemyNotificationRepository(NotificationRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_notification(row: RowMapping) -> Notification:
        data = row["data"]
        if isinstance(data, str):
            data = json.loads(data)
        return Notification(
            id=row["id"],
            uuid=row["uuid"],
            user_id=row["user_id"],
            notification_type=row["notification_type"],
            title=row["title"],
            message=row["message"],
            data=data or {},
            is_read=bool(row["is_read"]),
            created_at=row["created_at"],
        )

    def create(self, notification: Notification) -> Notification:
        notification_uuid = str(ULID())
        self.conn.execute(
            text(
                "INSERT INTO notifications (uuid, user_id, notification_type, title, message, data, is_read, "
                "created_at) "
                "VALUES (:uuid, :user_id, :notification_type, :title, :message, :data, :is_read, :created_at)"
            ),
            {
                "uuid": notification_uuid,
                "user_id": notification.user_id,
                "notification_type": notification.notification_type,
                "title": notification.title,
                "message": notification.message,
                "data": json.dumps(notification.data, default=str),
                "is_read": notification.is_read,
                "created_at": _now(),
            },
        )
        self.conn.commit()
        row = (
            self.conn.execute(text("SELECT * FROM notifications WHERE uuid = :uuid"), {"uuid": notification_uuid})
            .mappings()
            .fetchone()
        )
        if row is None:
            raise RuntimeError(f"Failed to retrieve notification after create (uuid={notification_uuid})")
        return self._row_to_notification(row)

    def list_for_user(self, user_id: int) -> list[Notification]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM notifications WHERE user_id = :user_id ORDER BY id DESC"),
                {"user_id": user_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_notification(row) for row in rows]


class SQLAlchemyAuditLogRepository(AuditLogRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    @staticmethod
    def _row_to_audit_log(row: RowMapping) -> AuditLog:
        previous_state = row["previous_state"]
        if isinstance(previous_state, str):
            previous_state = json.loads(previous_state)
        new_state = row["new_state"]
        if isinstance(new_state, str):
            new_state = json.loads(new_state)
        metadata = row["metadata"]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)

        return AuditLog(
            id=row["id"],
            uuid=row["uuid"],
            event_type=row["event_type"],
            actor_id=row["actor_id"],
            source=row["source"],
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            entity_uuid=row["entity_uuid"],
            previous_state=previous_state,
            new_state=new_state,
            metadata=metadata,
            created_at=row["created_at"],
        )

    def create(self, audit_log: AuditLog) -> AuditLog:
        audit_uuid = str(ULID())
        self.conn.execute(
            text(
                "INSERT INTO audit_logs (uuid, event_type, actor_id, source, entity_type, entity_id, "
                "entity_uuid, previous_state, new_state, metadata, created_at) "
                "VALUES (:uuid, :event_type, :actor_id, :source, :entity_type, :entity_id, "
                ":entity_uuid, :previous_state, :new_state, :metadata, :created_at)"
            ),
            {
                "uuid": audit_uuid,
                "event_type": audit_log.event_type,
                "actor_id": audit_log.actor_id,
                "source": audit_log.source,
                "entity_type": audit_log.entity_type,
                "entity_id": audit_log.entity_id,
                "entity_uuid": audit_log.entity_uuid,
                "previous_state": json.dumps(audit_log.previous_state)
                if audit_log.previous_state is not None
                else None,
                "new_state": json.dumps(audit_log.new_state) if audit_log.new_state is not None else None,
                "metadata": json.dumps(audit_log.metadata),
                "created_at": _now(),
            },
        )
        self.conn.commit()

        row = (
            self.conn.execute(text("SELECT * FROM audit_logs WHERE uuid = :uuid"), {"uuid": audit_uuid})
            .mappings()
            .fetchone()
        )
        if row is None:
            raise RuntimeError(f"Failed to retrieve audit log after create (uuid={audit_uuid})")
        return self._row_to_audit_log(row)

    def list_by_entity(self, entity_type: str, entity_id: int) -> list[AuditLog]:
        rows = (
            self.conn.execute(
                text(
                    "SELECT * FROM audit_logs WHERE entity_type = :entity_type "
                    "AND entity_id = :entity_id ORDER BY created_at DESC, id DESC"
                ),
                {"entity_type": entity_type, "entity_id": entity_id},
            )
            .mappings()
            .fetchall()
        )
        return [self._row_to_audit_log(row) for row in rows]
