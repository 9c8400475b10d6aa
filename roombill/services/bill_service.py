from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from pydantic import BaseModel

from roombill.constants import BILLABLE_RENTAL_STATUSES, LOCAL_TZ
from roombill.exceptions import (
    BillingError,
    ConflictError,
    DuplicateBillError,
    IneligibleRentalError,
    NotFoundError,
)
from roombill.models.audit_log import AuditEventType, AuditSource
from roombill.models.bill import Bill, BillItem, BillQuery, BillStatus, BillUpdate
from roombill.models.billing_period import BillingPeriod
from roombill.models.meter_reading import MeterReadingInput
from roombill.models.notification import BillNotification
from roombill.models.rental import Rental
from roombill.models.room import MeteredCost, RoomCost, RoomInstance
from roombill.notifications.base import BillNotifier
from roombill.repositories.base import BillRepository, RentalRepository, RoomRepository, UserRepository
from roombill.services import bill_status
from roombill.services.audit_serializers import serialize_bill
from roombill.services.audit_service import AuditService
from roombill.services.authorization_service import AuthorizationService
from roombill.services.cost_calculator import calculate_bill_items, sum_items
from roombill.services.meter_reading_service import MeterReadingService, readings_to_input
from roombill.services.proration import Proration, calculate_proration, overlaps_period
from roombill.settings import settings

logger = logging.getLogger(__name__)


class BillCalculation(BaseModel):
    """Everything computed for one rental and period, before anything is stored."""

    proration: Proration
    occupancy_count: int
    items: list[BillItem]
    merged_costs: list[RoomCost]

    @property
    def subtotal(self) -> int:
        return sum_items(self.items)

    @property
    def meter_costs_to_input(self) -> list[MeteredCost]:
        return readings_to_input(self.merged_costs)


def default_due_date(period: BillingPeriod) -> date:
    return period.period_end + timedelta(days=settings.due_days_after_period)


def is_billable(rental: Rental, period_start: date, period_end: date) -> bool:
    """A rental is billed for a period when it is active and its contract overlaps the period."""
    if rental.status not in BILLABLE_RENTAL_STATUSES:
        return False
    return overlaps_period(period_start, period_end, rental.contract_start_date, rental.contract_end_date)


class BillService:
    def __init__(
        self,
        bill_repo: BillRepository,
        rental_repo: RentalRepository,
        room_repo: RoomRepository,
        meter_service: MeterReadingService,
        user_repo: UserRepository | None = None,
        notifier: BillNotifier | None = None,
        audit_service: AuditService | None = None,
        authorization: AuthorizationService | None = None,
    ) -> None:
        self.bill_repo = bill_repo
        self.rental_repo = rental_repo
        self.room_repo = room_repo
        self.meter_service = meter_service
        self.user_repo = user_repo
        self.notifier = notifier
        self.audit_service = audit_service
        self.authorization = authorization or AuthorizationService()

    # ---- Calculation ----

    def occupancy_for(self, room_instance_id: int) -> int:
        return max(1, self.rental_repo.count_occupants(room_instance_id))

    def merged_costs_for(self, room_instance: RoomInstance) -> list[RoomCost]:
        costs = self.room_repo.list_costs(room_instance.room_id)
        return self.meter_service.merge_costs(costs, room_instance.id)

    def calculate(
        self,
        room_instance: RoomInstance,
        period_start: date,
        period_end: date,
        contract_start: date,
        contract_end: date | None,
        occupancy_count: int,
    ) -> BillCalculation:
        merged = self.merged_costs_for(room_instance)
        pricing = self.room_repo.get_pricing(room_instance.room_id)
        proration = calculate_proration(period_start, period_end, contract_start, contract_end)
        items = calculate_bill_items(merged, occupancy_count, proration.factor, pricing)
        return BillCalculation(
            proration=proration,
            occupancy_count=occupancy_count,
            items=items,
            merged_costs=merged,
        )

    def calculate_for_rental(
        self,
        rental: Rental,
        room_instance: RoomInstance,
        period: BillingPeriod,
        occupancy_count: int | None = None,
    ) -> BillCalculation:
        if not is_billable(rental, period.period_start, period.period_end):
            logger.debug("Rental %s not billable for %s", rental.id, period.billing_period)
            raise IneligibleRentalError(f"Rental {rental.id} is not billable for {period.billing_period}")
        if occupancy_count is None:
            occupancy_count = self.occupancy_for(room_instance.id)
        return self.calculate(
            room_instance,
            period.period_start,
            period.period_end,
            rental.contract_start_date,
            rental.contract_end_date,
            occupancy_count,
        )

    @staticmethod
    def _new_bill(
        rental: Rental,
        room_instance: RoomInstance,
        period: BillingPeriod,
        calculation: BillCalculation,
        *,
        auto_generated: bool,
        notes: str = "",
    ) -> Bill:
        if rental.id is None or room_instance.id is None:
            raise ValueError("Cannot bill a rental or room instance without an id")
        bill = Bill(
            rental_id=rental.id,
            room_instance_id=room_instance.id,
            billing_period=period.billing_period,
            billing_month=period.billing_month,
            billing_year=period.billing_year,
            period_start=period.period_start,
            period_end=period.period_end,
            rental_start_date=calculation.proration.effective_start,
            rental_end_date=calculation.proration.effective_end,
            occupancy_count=calculation.occupancy_count,
            status=bill_status.initial_status(calculation.merged_costs, auto_generated),
            due_date=default_due_date(period),
            notes=notes,
            is_auto_generated=auto_generated,
            requires_meter_data=bill_status.requires_meter_data(calculation.merged_costs),
            items=calculation.items,
        )
        bill.apply_totals()
        return bill

    # ---- Generation ----

    def generate_or_update_bill(
        self,
        rental: Rental,
        room_instance: RoomInstance,
        period: BillingPeriod,
        occupancy_count: int | None = None,
        notes: str = "",
    ) -> tuple[Bill, bool]:
        """Create the automated bill for ``rental`` and ``period`` unless it exists.

        Returns ``(bill, created)``.  An existing bill is returned untouched;
        use ``recalculate_bill`` to refresh one.
        """
        if rental.id is None:
            raise ValueError("Cannot generate bill for rental without an id")
        existing = self.bill_repo.get_by_rental_and_period(rental.id, period.billing_period)
        if existing is not None:
            logger.debug("Bill already exists: rental=%s period=%s", rental.id, period.billing_period)
            return existing, False

        calculation = self.calculate_for_rental(rental, room_instance, period, occupancy_count)
        bill = self._new_bill(rental, room_instance, period, calculation, auto_generated=True, notes=notes)
        try:
            bill = self.bill_repo.create(bill)
        except DuplicateBillError:
            logger.info("Bill created concurrently: rental=%s period=%s", rental.id, period.billing_period)
            existing = self.bill_repo.get_by_rental_and_period(rental.id, period.billing_period)
            if existing is None:
                raise
            return existing, False

        logger.info(
            "Bill generated: id=%s, rental=%s, period=%s, total=%d, status=%s",
            bill.id,
            rental.id,
            period.billing_period,
            bill.total_amount,
            bill.status.value,
        )
        self._audit(AuditEventType.BILL_GENERATE, bill, source=AuditSource.BATCH)
        if bill.status == BillStatus.PENDING:
            self._notify_ready(bill, rental, room_instance)
        return bill, True

    def recalculate_bill(self, bill: Bill, occupancy_count: int | None = None) -> tuple[Bill, bool]:
        """Replace a bill's items with a fresh calculation.

        Returns ``(bill, became_ready)`` where ``became_ready`` marks the
        ``draft -> pending`` transition.
        """
        bill_status.ensure_mutable(bill, "recalculate")
        if bill.id is None:
            raise ValueError("Cannot recalculate bill without an id")
        rental = self._get_rental(bill.rental_id)
        room_instance = self._get_room_instance(bill.room_instance_id)

        calculation = self.calculate(
            room_instance,
            bill.period_start,
            bill.period_end,
            bill.rental_start_date or rental.contract_start_date,
            bill.rental_end_date or rental.contract_end_date,
            occupancy_count or bill.occupancy_count or 1,
        )
        bill.items = calculation.items
        bill.occupancy_count = calculation.occupancy_count
        bill.requires_meter_data = bill_status.requires_meter_data(calculation.merged_costs)
        bill.status, became_ready = bill_status.status_after_meter_update(bill.status, calculation.merged_costs)
        bill.apply_totals()

        updated = self.bill_repo.update(bill)
        logger.info(
            "Bill recalculated: id=%s, total=%d, status=%s, became_ready=%s",
            updated.id,
            updated.total_amount,
            updated.status.value,
            became_ready,
        )
        if became_ready:
            self._notify_ready(updated, rental, room_instance)
        return updated, became_ready

    # ---- Landlord operations ----

    def create_bill(
        self,
        user_id: int,
        rental_id: int,
        room_instance_id: int,
        period: BillingPeriod,
        subtotal: int,
        discount_amount: int = 0,
        tax_amount: int = 0,
        due_date: date | None = None,
        notes: str = "",
    ) -> Bill:
        """Create a manual bill with caller-supplied amounts."""
        rental = self._get_rental(rental_id)
        self.authorization.ensure_can_manage_rental(user_id, rental, "Create bill")
        if rental.room_instance_id != room_instance_id:
            logger.warning("Create bill failed: instance=%s not part of rental=%s", room_instance_id, rental_id)
            raise BillingError("Room instance does not belong to this rental")
        self._ensure_no_bill(rental_id, period.billing_period)
        room_instance = self._get_room_instance(room_instance_id)

        bill = Bill(
            rental_id=rental_id,
            room_instance_id=room_instance_id,
            billing_period=period.billing_period,
            billing_month=period.billing_month,
            billing_year=period.billing_year,
            period_start=period.period_start,
            period_end=period.period_end,
            subtotal=subtotal,
            discount_amount=discount_amount,
            tax_amount=tax_amount,
            status=BillStatus.PENDING,
            due_date=due_date or default_due_date(period),
            notes=notes,
            is_auto_generated=False,
        )
        bill.apply_adjustments()
        bill = self._create_manual(bill)
        logger.info("Bill created: id=%s, rental=%s, period=%s", bill.id, rental_id, period.billing_period)
        self._audit(AuditEventType.BILL_CREATE, bill, actor_id=user_id)
        self._notify_ready(bill, rental, room_instance)
        return bill

    def create_bill_for_room(
        self,
        user_id: int,
        room_instance_id: int,
        period: BillingPeriod,
        occupancy_count: int,
        meter_readings: Iterable[MeterReadingInput] = (),
        notes: str = "",
    ) -> Bill:
        """Create a calculated bill for one room instance, saving the supplied readings first."""
        if occupancy_count < 1:
            raise BillingError("Occupancy count must be at least 1")
        room_instance = self._get_room_instance(room_instance_id)
        rental = self._find_billable_rental(room_instance, period)
        self.authorization.ensure_can_manage_rental(user_id, rental, "Create bill")
        if rental.id is None:
            raise ValueError("Cannot bill a rental without an id")
        self._ensure_no_bill(rental.id, period.billing_period)

        readings = list(meter_readings)
        self._validate_readings(room_instance, readings)
        self.meter_service.apply_inputs(room_instance_id, readings)

        calculation = self.calculate_for_rental(rental, room_instance, period, occupancy_count)
        bill = self._new_bill(rental, room_instance, period, calculation, auto_generated=False, notes=notes)
        bill = self._create_manual(bill)
        logger.info(
            "Bill created for room: id=%s, instance=%s, period=%s, total=%d",
            bill.id,
            room_instance_id,
            period.billing_period,
            bill.total_amount,
        )
        self._audit(AuditEventType.BILL_CREATE, bill, actor_id=user_id)
        self._notify_ready(bill, rental, room_instance)
        return bill

    def update_meter_data(
        self,
        bill_id: int,
        user_id: int,
        meter_readings: Iterable[MeterReadingInput],
        occupancy_count: int | None = None,
    ) -> Bill:
        bill, rental = self._get_bill_for_owner(bill_id, user_id, "Update meter data")
        bill_status.ensure_mutable(bill, "update meter data for")
        if occupancy_count is not None and occupancy_count < 1:
            raise BillingError("Occupancy count must be at least 1")
        room_instance = self._get_room_instance(bill.room_instance_id)

        readings = list(meter_readings)
        self._validate_readings(room_instance, readings)
        previous = serialize_bill(bill)
        self.meter_service.apply_inputs(bill.room_instance_id, readings)

        updated, became_ready = self.recalculate_bill(bill, occupancy_count)
        self._audit(
            AuditEventType.BILL_METER_UPDATE,
            updated,
            actor_id=user_id,
            previous_state=previous,
            metadata={"became_ready": became_ready, "readings": len(readings)},
        )
        return updated

    def update_bill(self, bill_id: int, user_id: int, update: BillUpdate) -> Bill:
        bill, _ = self._get_bill_for_owner(bill_id, user_id, "Update bill")
        bill_status.ensure_mutable(bill, "update")
        previous = serialize_bill(bill)

        if update.discount_amount is not None:
            bill.discount_amount = update.discount_amount
        if update.tax_amount is not None:
            bill.tax_amount = update.tax_amount
        if update.due_date is not None:
            bill.due_date = update.due_date
        if update.notes is not None:
            bill.notes = update.notes
        bill.apply_adjustments()

        updated = self.bill_repo.update(bill)
        logger.info("Bill updated: id=%s, total=%d", updated.id, updated.total_amount)
        self._audit(AuditEventType.BILL_UPDATE, updated, actor_id=user_id, previous_state=previous)
        return updated

    def delete_bill(self, bill_id: int, user_id: int) -> None:
        bill, _ = self._get_bill_for_owner(bill_id, user_id, "Delete bill")
        bill_status.ensure_mutable(bill, "delete")
        self.bill_repo.delete(bill_id)
        logger.info("Bill %s deleted", bill_id)
        self._audit(AuditEventType.BILL_DELETE, bill, actor_id=user_id, previous_state=serialize_bill(bill))

    def mark_bill_as_paid(self, bill_id: int, user_id: int, paid_date: datetime | None = None) -> Bill:
        """Payment-completion path: settle the full amount."""
        bill, _ = self._get_bill_for_owner(bill_id, user_id, "Mark bill as paid")
        if bill.status == BillStatus.PAID:
            logger.info("Bill %s already paid, nothing to do", bill_id)
            return bill
        previous = serialize_bill(bill)
        paid_date = paid_date or datetime.now(LOCAL_TZ)
        self.bill_repo.mark_paid(bill_id, paid_date)
        bill = bill_status.mark_paid(bill, paid_date)
        logger.info("Bill %s marked as paid, amount=%d", bill_id, bill.paid_amount)
        self._audit(AuditEventType.BILL_PAID, bill, actor_id=user_id, previous_state=previous)
        return bill

    # ---- Queries ----

    def get_bill(self, bill_id: int) -> Bill | None:
        result = self.bill_repo.get_by_id(bill_id)
        logger.debug("get_bill id=%s found=%s", bill_id, result is not None)
        return result

    def get_bill_by_uuid(self, uuid: str) -> Bill | None:
        result = self.bill_repo.get_by_uuid(uuid)
        logger.debug("get_bill_by_uuid uuid=%s found=%s", uuid, result is not None)
        return result

    def list_bills(self, query: BillQuery | None = None) -> list[Bill]:
        result = self.bill_repo.search(query or BillQuery())
        logger.debug("Listed %d bills", len(result))
        return result

    def list_bills_for_owner(self, user_id: int, query: BillQuery | None = None) -> list[Bill]:
        """Bills of rentals owned by ``user_id``."""
        result = []
        owners: dict[int, bool] = {}
        for bill in self.list_bills(query):
            if bill.rental_id not in owners:
                rental = self.rental_repo.get_by_id(bill.rental_id)
                owners[bill.rental_id] = rental is not None and self.authorization.can_manage_rental(user_id, rental)
            if owners[bill.rental_id]:
                result.append(bill)
        return result

    def metered_costs_for_instance(self, room_instance_id: int) -> list[MeteredCost]:
        """Active metered costs of a room instance, with its current readings merged in."""
        room_instance = self._get_room_instance(room_instance_id)
        return [
            cost for cost in self.merged_costs_for(room_instance) if isinstance(cost, MeteredCost) and cost.is_active
        ]

    # ---- Helpers ----

    def _get_rental(self, rental_id: int) -> Rental:
        rental = self.rental_repo.get_by_id(rental_id)
        if rental is None:
            logger.warning("Rental %s not found", rental_id)
            raise NotFoundError("Rental not found")
        return rental

    def _get_room_instance(self, room_instance_id: int) -> RoomInstance:
        room_instance = self.room_repo.get_instance(room_instance_id)
        if room_instance is None:
            logger.warning("Room instance %s not found", room_instance_id)
            raise NotFoundError("Room instance not found")
        return room_instance

    def _get_bill_for_owner(self, bill_id: int, user_id: int, action: str) -> tuple[Bill, Rental]:
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None:
            logger.warning("%s failed: bill %s not found", action, bill_id)
            raise NotFoundError("Bill not found")
        rental = self._get_rental(bill.rental_id)
        self.authorization.ensure_can_manage_rental(user_id, rental, action)
        return bill, rental

    def _find_billable_rental(self, room_instance: RoomInstance, period: BillingPeriod) -> Rental:
        if room_instance.id is None:
            raise ValueError("Room instance must have an id")
        for rental in self.rental_repo.list_billable_for_room_instance(room_instance.id):
            if is_billable(rental, period.period_start, period.period_end):
                return rental
        logger.warning("No billable rental: instance=%s period=%s", room_instance.id, period.billing_period)
        raise NotFoundError("No active rental for this room instance in the billing period")

    def _ensure_no_bill(self, rental_id: int, billing_period: str) -> None:
        if self.bill_repo.get_by_rental_and_period(rental_id, billing_period) is not None:
            logger.warning("Create bill failed: rental=%s period=%s exists", rental_id, billing_period)
            raise ConflictError("Bill already exists for this period")

    def _create_manual(self, bill: Bill) -> Bill:
        try:
            return self.bill_repo.create(bill)
        except DuplicateBillError as exc:
            logger.warning("Create bill failed: %s", exc)
            raise ConflictError("Bill already exists for this period") from exc

    def _validate_readings(self, room_instance: RoomInstance, readings: list[MeterReadingInput]) -> None:
        metered_ids = {
            cost.id for cost in self.room_repo.list_costs(room_instance.room_id) if isinstance(cost, MeteredCost)
        }
        for reading in readings:
            if reading.room_cost_id not in metered_ids:
                logger.warning(
                    "Meter update failed: cost=%s is not metered for instance=%s",
                    reading.room_cost_id,
                    room_instance.id,
                )
                raise BillingError(f"Room cost {reading.room_cost_id} is not a metered cost of this room")

    def _notify_ready(self, bill: Bill, rental: Rental, room_instance: RoomInstance) -> None:
        """Send the bill-ready notification. Failures are logged, never raised."""
        if self.notifier is None or bill.id is None:
            return
        try:
            landlord = self.user_repo.get_by_id(rental.owner_id) if self.user_repo is not None else None
            currency = bill.items[0].currency if bill.items else settings.default_currency
            self.notifier.notify_bill(
                BillNotification(
                    tenant_id=rental.tenant_id,
                    month=bill.billing_month,
                    year=bill.billing_year,
                    room_name=room_instance.display_name,
                    amount=bill.total_amount,
                    currency=currency,
                    bill_id=bill.id,
                    due_date=bill.due_date,
                    landlord_name=landlord.full_name if landlord else "",
                )
            )
        except Exception:
            logger.exception("Failed to send bill notification for bill %s", bill.id)

    def _audit(self, event_type: str, bill: Bill, **kwargs) -> None:
        if self.audit_service is not None:
            self.audit_service.safe_record(event_type, bill, **kwargs)
