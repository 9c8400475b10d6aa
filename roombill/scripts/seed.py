"""Seed the database with a demo building for local development.

Usage:
    python -m roombill.scripts.seed
"""

from __future__ import annotations

import random
from datetime import date
from decimal import Decimal

from faker import Faker
from rich.console import Console
from rich.table import Table

from roombill.db import initialize_db
from roombill.logging import configure_logging, reconfigure
from roombill.models.rental import Rental, RentalStatus
from roombill.models.room import (
    Building,
    CostCategory,
    FixedCost,
    MeteredCost,
    PerPersonCost,
    Room,
    RoomInstance,
    RoomPricing,
)
from roombill.models.user import User
from roombill.money import format_money
from roombill.repositories.factory import get_rental_repository, get_room_repository, get_user_repository

console = Console()
fake = Faker("vi_VN")

NUM_TENANTS = 8
ROOMS_PER_TYPE = 3

# (name, base price, per-type costs)
ROOM_TYPES = [
    ("Studio", 3_500_000),
    ("One bedroom", 5_000_000),
    ("Duplex", 7_500_000),
]


def _room_costs(room_id: int) -> list:
    return [
        MeteredCost(
            room_id=room_id,
            name="Electricity",
            category=CostCategory.UTILITY,
            unit_price=3500,
            unit="kWh",
        ),
        MeteredCost(
            room_id=room_id,
            name="Water",
            category=CostCategory.UTILITY,
            unit_price=18000,
            unit="m3",
            meter_reading=Decimal(random.randint(100, 200)),
            last_meter_reading=Decimal(random.randint(60, 99)),
        ),
        FixedCost(room_id=room_id, name="Internet", category=CostCategory.SERVICE, fixed_amount=100_000),
        FixedCost(room_id=room_id, name="Parking", category=CostCategory.PARKING, fixed_amount=150_000),
        PerPersonCost(room_id=room_id, name="Cleaning", category=CostCategory.SERVICE, per_person_amount=50_000),
    ]


def _create_users(user_repo) -> tuple[User, list[User]]:
    console.print("[cyan]Creating users...[/cyan]")
    landlord = user_repo.create(User(first_name=fake.first_name(), last_name=fake.last_name(), email=fake.email()))
    console.print(f"  [bold green]Landlord:[/bold green] {landlord.full_name} (id={landlord.id})")

    tenants = []
    for _ in range(NUM_TENANTS):
        tenant = user_repo.create(User(first_name=fake.first_name(), last_name=fake.last_name(), email=fake.email()))
        console.print(f"  Tenant: {tenant.full_name} (id={tenant.id})")
        tenants.append(tenant)

    console.print(f"[green]{len(tenants) + 1} users created.[/green]\n")
    return landlord, tenants


def _create_building(room_repo, landlord: User) -> tuple[Building, list[RoomInstance]]:
    console.print("[cyan]Creating building...[/cyan]")
    assert landlord.id is not None
    building = room_repo.create_building(
        Building(owner_id=landlord.id, name=f"{fake.last_name()} Residence", address=fake.address())
    )
    console.print(f"  Building: {building.name} (id={building.id})")

    instances: list[RoomInstance] = []
    floor = 1
    for name, price in ROOM_TYPES:
        assert building.id is not None
        room = room_repo.create_room(Room(building_id=building.id, name=name))
        assert room.id is not None
        room_repo.set_pricing(RoomPricing(room_id=room.id, base_price_monthly=price, deposit_amount=price))
        for cost in _room_costs(room.id):
            room_repo.create_cost(cost)
        for n in range(1, ROOMS_PER_TYPE + 1):
            instance = room_repo.create_instance(RoomInstance(room_id=room.id, room_number=f"{floor}0{n}"))
            instances.append(instance)
        console.print(f"  Room type [bold]{name}[/bold]: {ROOMS_PER_TYPE} rooms at {format_money(price)}")
        floor += 1

    console.print(f"[green]{len(instances)} room instances created.[/green]\n")
    return building, instances


def _create_rentals(rental_repo, landlord: User, tenants: list[User], instances: list[RoomInstance]) -> list[Rental]:
    console.print("[cyan]Creating rentals...[/cyan]")
    assert landlord.id is not None
    today = date.today()
    rentals = []
    for tenant, instance in zip(tenants, instances):
        assert tenant.id is not None and instance.id is not None
        # Some tenants moved in mid-month so the last period is prorated.
        start_day = random.choice([1, 1, 1, 10, 16])
        start = date(today.year - 1, today.month, start_day)
        rental = rental_repo.create(
            Rental(
                owner_id=landlord.id,
                tenant_id=tenant.id,
                room_instance_id=instance.id,
                contract_start_date=start,
                status=RentalStatus.ACTIVE.value,
            )
        )
        rentals.append(rental)

    table = Table(title="Rentals")
    table.add_column("#", style="dim")
    table.add_column("Room")
    table.add_column("Tenant")
    table.add_column("Start")
    for rental, instance, tenant in zip(rentals, instances, tenants):
        table.add_row(str(rental.id), instance.display_name, tenant.full_name, str(rental.contract_start_date))
    console.print(table)
    console.print(f"[green]{len(rentals)} rentals created.[/green]\n")
    return rentals


def main() -> None:
    configure_logging()
    initialize_db()
    reconfigure()

    landlord, tenants = _create_users(get_user_repository())
    building, instances = _create_building(get_room_repository(), landlord)
    _create_rentals(get_rental_repository(), landlord, tenants, instances)

    console.print(
        f"[bold green]Done.[/bold green] Generate bills for building {building.id} as landlord {landlord.id}."
    )


if __name__ == "__main__":
    main()
