"""Bill lifecycle rules.

``draft`` bills are waiting for meter readings, ``pending`` bills are payable
and ``paid`` bills are frozen.  Payment itself happens elsewhere; this module
only decides which state a bill should be in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from roombill.exceptions import PaidBillError
from roombill.models.bill import Bill, BillStatus
from roombill.models.room import RoomCost
from roombill.services.meter_reading_service import readings_to_input

logger = logging.getLogger(__name__)


def requires_meter_data(merged_costs: Iterable[RoomCost]) -> bool:
    return bool(readings_to_input(merged_costs))


def initial_status(merged_costs: Iterable[RoomCost], auto_generated: bool) -> BillStatus:
    if not auto_generated:
        return BillStatus.PENDING
    if requires_meter_data(merged_costs):
        return BillStatus.DRAFT
    return BillStatus.PENDING


def status_after_meter_update(current: BillStatus, merged_costs: Iterable[RoomCost]) -> tuple[BillStatus, bool]:
    """Return ``(new_status, became_ready)``.

    Only a draft bill whose metered costs are now complete moves to pending;
    ``became_ready`` is true on that transition alone.
    """
    if current == BillStatus.DRAFT and not requires_meter_data(merged_costs):
        return BillStatus.PENDING, True
    return current, False


def ensure_mutable(bill: Bill, action: str = "modify") -> None:
    if bill.status == BillStatus.PAID:
        logger.warning("Cannot %s bill %s: already paid", action, bill.id)
        raise PaidBillError(f"Cannot {action} a paid bill")


def mark_paid(bill: Bill, paid_date: datetime) -> Bill:
    bill.status = BillStatus.PAID
    bill.paid_amount = bill.total_amount
    bill.remaining_amount = 0
    bill.paid_date = paid_date
    return bill
