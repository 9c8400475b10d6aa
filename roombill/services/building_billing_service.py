from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.exc import DBAPIError

from roombill.exceptions import IneligibleRentalError, NotFoundError
from roombill.models.billing_period import BillingPeriod
from roombill.models.rental import Rental
from roombill.models.room import Building, RoomInstance
from roombill.models.summary import BatchGenerationSummary, BuildingBillPreview, RoomBillPreview
from roombill.repositories.base import UserRepository
from roombill.services.bill_service import BillService, is_billable
from roombill.services.proration import resolve_billing_period

logger = logging.getLogger(__name__)


class BuildingBillingService:
    """Monthly bill generation across every room instance of a building."""

    def __init__(self, bill_service: BillService, user_repo: UserRepository | None = None) -> None:
        self.bill_service = bill_service
        self.room_repo = bill_service.room_repo
        self.rental_repo = bill_service.rental_repo
        self.user_repo = user_repo or bill_service.user_repo
        self.authorization = bill_service.authorization

    def _get_building(self, building_id: int, user_id: int | None, action: str) -> Building:
        building = self.room_repo.get_building(building_id)
        if building is None:
            logger.warning("%s failed: building %s not found", action, building_id)
            raise NotFoundError("Building not found")
        if user_id is not None:
            self.authorization.ensure_can_manage_building(user_id, building, action)
        return building

    def _billable_rentals(self, instance: RoomInstance, period: BillingPeriod) -> list[Rental]:
        """Every rental of the instance that is billed for the period; shared rooms have several."""
        if instance.id is None:
            return []
        return [
            rental
            for rental in self.rental_repo.list_billable_for_room_instance(instance.id)
            if is_billable(rental, period.period_start, period.period_end)
        ]

    def generate_monthly_bills_for_building(
        self,
        building_id: int,
        billing_period: str | None = None,
        *,
        period_start: date | None = None,
        period_end: date | None = None,
        now: datetime | None = None,
        user_id: int | None = None,
    ) -> BatchGenerationSummary:
        """Generate one bill per billable rental of each room instance for the period.

        A shared room gets one bill per rental.  Rooms without a billable
        rental are skipped and bills that already exist are counted, never
        recreated.  A failure in one room is logged and
        counted; database connectivity errors abort the run.
        """
        self._get_building(building_id, user_id, "Generate bills")
        period = resolve_billing_period(billing_period, period_start=period_start, period_end=period_end, now=now)
        logger.info("Generating bills: building=%s period=%s", building_id, period.billing_period)

        summary = BatchGenerationSummary(
            message="",
            building_id=building_id,
            billing_period=period.billing_period,
        )
        for instance in self.room_repo.list_instances_by_building(building_id):
            rentals = self._billable_rentals(instance, period)
            if not rentals:
                logger.debug("No billable rental for instance=%s", instance.id)
                summary.bills_skipped += 1
                continue
            for rental in rentals:
                try:
                    _, created = self.bill_service.generate_or_update_bill(rental, instance, period)
                except IneligibleRentalError:
                    summary.bills_skipped += 1
                    continue
                except DBAPIError:
                    logger.error("Database error while billing instance=%s, aborting run", instance.id)
                    raise
                except Exception:
                    logger.exception("Failed to generate bill for instance=%s rental=%s", instance.id, rental.id)
                    summary.bills_failed += 1
                    continue
                if created:
                    summary.bills_created += 1
                else:
                    summary.bills_existed += 1

        summary.message = (
            f"Generated {summary.bills_created} bills for {period.billing_period} "
            f"({summary.bills_existed} existing, {summary.bills_skipped} skipped, {summary.bills_failed} failed)"
        )
        logger.info(
            "Bill generation done: building=%s period=%s created=%d existed=%d skipped=%d failed=%d",
            building_id,
            period.billing_period,
            summary.bills_created,
            summary.bills_existed,
            summary.bills_skipped,
            summary.bills_failed,
        )
        return summary

    def preview_building_bills(
        self,
        building_id: int,
        billing_period: str | None = None,
        *,
        period_start: date | None = None,
        period_end: date | None = None,
        now: datetime | None = None,
        user_id: int | None = None,
    ) -> BuildingBillPreview:
        """Calculate what each billable rental would be charged, per room, without storing anything."""
        building = self._get_building(building_id, user_id, "Preview bills")
        period = resolve_billing_period(billing_period, period_start=period_start, period_end=period_end, now=now)

        preview = BuildingBillPreview(
            building_id=building_id,
            building_name=building.name,
            billing_period=period.billing_period,
        )
        needing_meters: set[int] = set()
        for instance in self.room_repo.list_instances_by_building(building_id):
            if instance.id is None:
                continue
            for rental in self._billable_rentals(instance, period):
                if rental.id is None:
                    continue
                calculation = self.bill_service.calculate_for_rental(rental, instance, period)
                tenant = self.user_repo.get_by_id(rental.tenant_id) if self.user_repo is not None else None
                room_preview = RoomBillPreview(
                    room_instance_id=instance.id,
                    room_number=instance.room_number,
                    room_name=instance.room_name,
                    rental_id=rental.id,
                    tenant_name=tenant.full_name if tenant else "",
                    occupancy_count=calculation.occupancy_count,
                    calculated_items=calculation.items,
                    calculated_total=calculation.subtotal,
                    meter_costs_to_input=calculation.meter_costs_to_input,
                )
                preview.room_bills.append(room_preview)
                preview.total_building_amount += room_preview.calculated_total
                if room_preview.meter_costs_to_input:
                    needing_meters.add(instance.id)

        preview.rooms_needing_meter_data = len(needing_meters)
        preview.total_rooms = len({room.room_instance_id for room in preview.room_bills})
        logger.debug(
            "Preview building=%s period=%s rooms=%d total=%d",
            building_id,
            period.billing_period,
            preview.total_rooms,
            preview.total_building_amount,
        )
        return preview
