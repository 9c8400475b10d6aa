"""Serializers that convert models to dicts suitable for audit log state fields.

Dates and decimals are converted to strings for JSON compatibility.
"""

from __future__ import annotations

from roombill.models.bill import Bill


def serialize_bill(bill: Bill) -> dict:
    """Serialize a Bill (with items) for audit state."""
    return {
        "id": bill.id,
        "uuid": bill.uuid,
        "rental_id": bill.rental_id,
        "room_instance_id": bill.room_instance_id,
        "billing_period": bill.billing_period,
        "occupancy_count": bill.occupancy_count,
        "subtotal": bill.subtotal,
        "discount_amount": bill.discount_amount,
        "tax_amount": bill.tax_amount,
        "total_amount": bill.total_amount,
        "paid_amount": bill.paid_amount,
        "remaining_amount": bill.remaining_amount,
        "status": bill.status.value,
        "due_date": bill.due_date.isoformat() if bill.due_date else None,
        "requires_meter_data": bill.requires_meter_data,
        "notes": bill.notes,
        "items": [
            {
                "item_type": item.item_type,
                "item_name": item.item_name,
                "quantity": str(item.quantity),
                "unit_price": item.unit_price,
                "amount": item.amount,
                "currency": item.currency,
            }
            for item in bill.items
        ],
    }
