import questionary
from rich.console import Console

from roombill.cli.bill_menu import create_bill_for_room_menu, list_bills_menu
from roombill.cli.building_menu import generate_bills_menu, preview_bills_menu
from roombill.notifications.factory import get_notifier
from roombill.repositories.factory import (
    get_audit_log_repository,
    get_bill_repository,
    get_meter_reading_repository,
    get_rental_repository,
    get_room_repository,
    get_user_repository,
)
from roombill.services.audit_service import AuditService
from roombill.services.bill_service import BillService
from roombill.services.building_billing_service import BuildingBillingService
from roombill.services.meter_reading_service import MeterReadingService

console = Console()


def _build_services() -> tuple[BillService, BuildingBillingService]:
    user_repo = get_user_repository()
    bill_service = BillService(
        bill_repo=get_bill_repository(),
        rental_repo=get_rental_repository(),
        room_repo=get_room_repository(),
        meter_service=MeterReadingService(get_meter_reading_repository()),
        user_repo=user_repo,
        notifier=get_notifier(),
        audit_service=AuditService(get_audit_log_repository()),
    )
    return bill_service, BuildingBillingService(bill_service, user_repo)


def _ask_user_id() -> int | None:
    while True:
        raw = questionary.text("Your landlord user id:").ask()
        if raw is None or raw == "":
            return None
        if raw.isdigit():
            return int(raw)
        console.print("[red]Enter a numeric id.[/red]")


def main_menu() -> None:
    bill_service, building_service = _build_services()

    console.print()
    console.print("[bold]Room Billing[/bold]", style="cyan")
    console.print()

    user_id = _ask_user_id()
    if user_id is None:
        console.print("[bold]Goodbye![/bold]")
        return

    while True:
        choice = questionary.select(
            "Main Menu",
            choices=[
                "Generate Monthly Bills",
                "Preview Building Bills",
                "Create Bill for Room",
                "List Bills",
                "Exit",
            ],
        ).ask()

        if choice is None or choice == "Exit":
            console.print("[bold]Goodbye![/bold]")
            break
        elif choice == "Generate Monthly Bills":
            generate_bills_menu(building_service, user_id)
        elif choice == "Preview Building Bills":
            preview_bills_menu(building_service, user_id)
        elif choice == "Create Bill for Room":
            create_bill_for_room_menu(bill_service, user_id)
        elif choice == "List Bills":
            list_bills_menu(bill_service, user_id)
