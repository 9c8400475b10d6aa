"""Root conftest: in-memory SQLite engine and fixtures for the full schema."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from roombill.models.rental import Rental
from roombill.models.room import (
    Building,
    FixedCost,
    MeteredCost,
    PerPersonCost,
    Room,
    RoomInstance,
    RoomPricing,
)
from roombill.models.user import User

# Matches Alembic head: 5c1e7a9b3d20 (initial schema)
SCHEMA_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name VARCHAR(255) NOT NULL DEFAULT '',
    last_name VARCHAR(255) NOT NULL DEFAULT '',
    email VARCHAR(255) NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE buildings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL REFERENCES users(id),
    name VARCHAR(255) NOT NULL,
    address TEXT NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE rooms (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    building_id INTEGER NOT NULL REFERENCES buildings(id) ON DELETE CASCADE,
    name VARCHAR(255) NOT NULL,
    created_at DATETIME NOT NULL
);

CREATE TABLE room_instances (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    room_id INTEGER NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
    room_number VARCHAR(50) NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT 1,
    created_at DATETIME NOT NULL
);

CREATE TABLE room_pricing (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    room_id INTEGER NOT NULL UNIQUE REFERENCES rooms(id) ON DELETE CASCADE,
    base_price_monthly NUMERIC(15, 2) NOT NULL DEFAULT 0,
    deposit_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    currency VARCHAR(3) NOT NULL DEFAULT 'VND'
);

CREATE TABLE room_costs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    room_id INTEGER NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
    name VARCHAR(255) NOT NULL,
    category VARCHAR(20) NOT NULL DEFAULT 'utility',
    cost_type VARCHAR(20) NOT NULL,
    currency VARCHAR(3) NOT NULL DEFAULT 'VND',
    is_active BOOLEAN NOT NULL DEFAULT 1,
    notes TEXT NOT NULL DEFAULT '',
    fixed_amount NUMERIC(15, 2),
    per_person_amount NUMERIC(15, 2),
    unit_price NUMERIC(15, 2),
    unit VARCHAR(20) NOT NULL DEFAULT '',
    meter_reading NUMERIC(15, 3),
    last_meter_reading NUMERIC(15, 3),
    created_at DATETIME NOT NULL
);

CREATE TABLE room_instance_meter_readings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    room_instance_id INTEGER NOT NULL REFERENCES room_instances(id) ON DELETE CASCADE,
    room_cost_id INTEGER NOT NULL REFERENCES room_costs(id) ON DELETE CASCADE,
    meter_reading NUMERIC(15, 3),
    last_meter_reading NUMERIC(15, 3),
    updated_at DATETIME NOT NULL,
    UNIQUE(room_instance_id, room_cost_id)
);

CREATE TABLE rentals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL REFERENCES users(id),
    tenant_id INTEGER NOT NULL REFERENCES users(id),
    room_instance_id INTEGER NOT NULL REFERENCES room_instances(id),
    contract_start_date DATE NOT NULL,
    contract_end_date DATE,
    monthly_rent NUMERIC(15, 2) NOT NULL DEFAULT 0,
    status VARCHAR(20) NOT NULL DEFAULT 'active',
    created_at DATETIME NOT NULL
);

CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    rental_id INTEGER NOT NULL REFERENCES rentals(id),
    room_instance_id INTEGER NOT NULL REFERENCES room_instances(id),
    billing_period VARCHAR(7) NOT NULL,
    billing_month INTEGER NOT NULL,
    billing_year INTEGER NOT NULL,
    period_start DATE NOT NULL,
    period_end DATE NOT NULL,
    rental_start_date DATE,
    rental_end_date DATE,
    occupancy_count INTEGER NOT NULL DEFAULT 1,
    subtotal NUMERIC(15, 2) NOT NULL DEFAULT 0,
    discount_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    tax_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    total_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    paid_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    remaining_amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    status VARCHAR(20) NOT NULL DEFAULT 'draft',
    due_date DATE,
    paid_date DATETIME,
    notes TEXT NOT NULL DEFAULT '',
    is_auto_generated BOOLEAN NOT NULL DEFAULT 0,
    requires_meter_data BOOLEAN NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL,
    updated_at DATETIME NOT NULL,
    UNIQUE(rental_id, billing_period)
);

CREATE TABLE bill_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    item_type VARCHAR(20) NOT NULL,
    item_name VARCHAR(255) NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    quantity NUMERIC(15, 3) NOT NULL DEFAULT 1,
    unit_price NUMERIC(15, 2) NOT NULL DEFAULT 0,
    amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
    currency VARCHAR(3) NOT NULL DEFAULT 'VND',
    notes TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    notification_type VARCHAR(20) NOT NULL,
    title VARCHAR(255) NOT NULL,
    message TEXT NOT NULL DEFAULT '',
    data TEXT NOT NULL DEFAULT '{}',
    is_read BOOLEAN NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL
);

CREATE TABLE audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    event_type VARCHAR(50) NOT NULL,
    actor_id INTEGER,
    source VARCHAR(10) NOT NULL,
    entity_type VARCHAR(50) NOT NULL DEFAULT '',
    entity_id INTEGER,
    entity_uuid VARCHAR(26) NOT NULL DEFAULT '',
    previous_state TEXT,
    new_state TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    created_at DATETIME NOT NULL
);
"""


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


@dataclass
class World:
    """One landlord, one building with a single room type and two instances, one active rental."""

    landlord: User
    tenant: User
    building: Building
    room: Room
    instance: RoomInstance
    empty_instance: RoomInstance
    rental: Rental
    electricity: MeteredCost
    water: MeteredCost
    internet: FixedCost
    cleaning: PerPersonCost


@pytest.fixture()
def world(db_connection: Connection) -> World:
    from roombill.repositories.sqlalchemy import (
        SQLAlchemyRentalRepository,
        SQLAlchemyRoomRepository,
        SQLAlchemyUserRepository,
    )

    users = SQLAlchemyUserRepository(db_connection)
    rooms = SQLAlchemyRoomRepository(db_connection)
    rentals = SQLAlchemyRentalRepository(db_connection)

    landlord = users.create(User(first_name="Lan", last_name="Nguyen", email="lan@example.com"))
    tenant = users.create(User(first_name="Minh", last_name="Tran", email="minh@example.com"))
    building = rooms.create_building(Building(owner_id=landlord.id, name="Sunrise House", address="12 Le Loi"))
    room = rooms.create_room(Room(building_id=building.id, name="Studio"))
    rooms.set_pricing(RoomPricing(room_id=room.id, base_price_monthly=3_100_000, deposit_amount=3_100_000))
    electricity = rooms.create_cost(MeteredCost(room_id=room.id, name="Electricity", unit_price=3500, unit="kWh"))
    water = rooms.create_cost(
        MeteredCost(
            room_id=room.id,
            name="Water",
            unit_price=18000,
            unit="m3",
            meter_reading=Decimal("112"),
            last_meter_reading=Decimal("100"),
        )
    )
    internet = rooms.create_cost(FixedCost(room_id=room.id, name="Internet", fixed_amount=100_000))
    cleaning = rooms.create_cost(PerPersonCost(room_id=room.id, name="Cleaning", per_person_amount=50_000))
    instance = rooms.create_instance(RoomInstance(room_id=room.id, room_number="101"))
    empty_instance = rooms.create_instance(RoomInstance(room_id=room.id, room_number="102"))
    rental = rentals.create(
        Rental(
            owner_id=landlord.id,
            tenant_id=tenant.id,
            room_instance_id=instance.id,
            contract_start_date=date(2023, 6, 1),
        )
    )
    return World(
        landlord=landlord,
        tenant=tenant,
        building=building,
        room=room,
        instance=instance,
        empty_instance=empty_instance,
        rental=rental,
        electricity=electricity,
        water=water,
        internet=internet,
        cleaning=cleaning,
    )
