"""Expand a room's cost definitions and base rent into bill line items.

Pure functions: no repositories, no I/O.  Meter readings must already be
merged with the room instance's overrides (see ``meter_reading_service``).
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from roombill.constants import RENT_ITEM_NAME, RENT_ITEM_TYPE
from roombill.models.bill import BillItem
from roombill.models.room import FixedCost, MeteredCost, PerPersonCost, RoomCost, RoomPricing
from roombill.money import to_minor_units


def format_quantity(value: Decimal) -> str:
    """25.000 -> '25', 12.50 -> '12.5'."""
    return format(value.normalize(), "f")


def _percent(factor: Decimal) -> int:
    return to_minor_units(factor * 100)


def _prorated_note(notes: str, factor: Decimal) -> str:
    return f"{notes} ({_percent(factor)}% of month)".strip()


def _rent_item(pricing: RoomPricing, factor: Decimal) -> BillItem | None:
    amount = to_minor_units(Decimal(pricing.base_price_monthly) * factor)
    if amount <= 0:
        return None
    pct = _percent(factor)
    return BillItem(
        item_type=RENT_ITEM_TYPE,
        item_name=RENT_ITEM_NAME,
        description=f"{RENT_ITEM_NAME} ({pct}% of month)",
        quantity=Decimal(1),
        unit_price=amount,
        amount=amount,
        currency=pricing.currency,
        notes=f"Prorated for {pct}% of billing period",
    )


def _fixed_item(cost: FixedCost, factor: Decimal) -> BillItem:
    amount = to_minor_units(Decimal(cost.fixed_amount) * factor)
    return BillItem(
        item_type=cost.category.value,
        item_name=cost.name,
        description=_prorated_note(cost.notes, factor),
        quantity=Decimal(1),
        unit_price=amount,
        amount=amount,
        currency=cost.currency,
        notes=cost.notes,
    )


def _per_person_item(cost: PerPersonCost, occupancy_count: int, factor: Decimal) -> BillItem:
    amount = to_minor_units(Decimal(cost.per_person_amount) * occupancy_count * factor)
    # Display only; amount is not recomputed from it.
    unit_price = to_minor_units(Decimal(amount) / occupancy_count)
    return BillItem(
        item_type=cost.category.value,
        item_name=f"{cost.name} ({occupancy_count} {'person' if occupancy_count == 1 else 'people'})",
        description=_prorated_note(cost.notes, factor),
        quantity=Decimal(occupancy_count),
        unit_price=unit_price,
        amount=amount,
        currency=cost.currency,
        notes=cost.notes,
    )


def _metered_item(cost: MeteredCost) -> BillItem | None:
    if cost.meter_reading is None or cost.last_meter_reading is None:
        return None
    usage = max(Decimal(0), cost.meter_reading - cost.last_meter_reading)
    unit = cost.unit or "units"
    usage_text = f"{format_quantity(usage)} {unit}"
    description = f"{cost.notes} - usage: {usage_text}" if cost.notes else f"Usage: {usage_text}"
    return BillItem(
        item_type=cost.category.value,
        item_name=f"{cost.name} ({usage_text})",
        description=description,
        quantity=usage,
        unit_price=cost.unit_price,
        amount=to_minor_units(usage * cost.unit_price),
        currency=cost.currency,
        notes=cost.notes,
    )


def calculate_bill_items(
    room_costs: Iterable[RoomCost],
    occupancy_count: int,
    proration_factor: Decimal = Decimal(1),
    room_pricing: RoomPricing | None = None,
) -> list[BillItem]:
    """Build the line items for one bill.

    Rent, fixed and per-person costs are scaled by ``proration_factor``;
    metered costs are billed on usage and skipped when a reading is missing.
    Items that come out at zero are dropped.
    """
    candidates: list[BillItem | None] = []

    if room_pricing is not None:
        candidates.append(_rent_item(room_pricing, proration_factor))

    for cost in room_costs:
        if not cost.is_active:
            continue
        if isinstance(cost, FixedCost):
            candidates.append(_fixed_item(cost, proration_factor))
        elif isinstance(cost, PerPersonCost):
            candidates.append(_per_person_item(cost, occupancy_count, proration_factor))
        elif isinstance(cost, MeteredCost):
            candidates.append(_metered_item(cost))
        else:
            raise TypeError(f"Unsupported room cost type: {type(cost).__name__}")

    items = [item for item in candidates if item is not None and item.amount > 0]
    for i, item in enumerate(items):
        item.sort_order = i
    return items


def sum_items(items: Iterable[BillItem]) -> int:
    return sum(item.amount for item in items)
