from __future__ import annotations

import questionary
from rich.console import Console
from rich.table import Table

from roombill.constants import format_period
from roombill.exceptions import BillingError
from roombill.money import format_money
from roombill.services.building_billing_service import BuildingBillingService
from roombill.services.proration import parse_billing_period
from roombill.settings import settings

console = Console()


def ask_building_id() -> int | None:
    while True:
        raw = questionary.text("Building id:").ask()
        if not raw:
            return None
        if raw.isdigit():
            return int(raw)
        console.print("[red]Enter a numeric id.[/red]")


def ask_billing_period() -> str | None:
    """Prompt for 'YYYY-MM'. Returns '' for the previous month, None when cancelled."""
    while True:
        raw = questionary.text("Billing period (YYYY-MM, blank for last month):").ask()
        if raw is None:
            return None
        if raw == "":
            return ""
        try:
            parse_billing_period(raw)
            return raw
        except ValueError:
            console.print("[red]Invalid format. Use YYYY-MM (e.g. 2024-03).[/red]")


def generate_bills_menu(building_service: BuildingBillingService, user_id: int) -> None:
    console.print()
    console.print("[bold]Generate Monthly Bills[/bold]", style="cyan")

    building_id = ask_building_id()
    if building_id is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return
    period = ask_billing_period()
    if period is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    try:
        summary = building_service.generate_monthly_bills_for_building(
            building_id, period or None, user_id=user_id
        )
    except BillingError as e:
        console.print(f"[red]{e}[/red]")
        return

    table = Table(title=f"Bills for {format_period(summary.billing_period)}")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Existing", justify="right")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Failed", justify="right", style="red")
    table.add_row(
        str(summary.bills_created),
        str(summary.bills_existed),
        str(summary.bills_skipped),
        str(summary.bills_failed),
    )
    console.print()
    console.print(table)
    console.print(f"[green bold]{summary.message}[/green bold]")


def preview_bills_menu(building_service: BuildingBillingService, user_id: int) -> None:
    console.print()
    console.print("[bold]Preview Building Bills[/bold]", style="cyan")

    building_id = ask_building_id()
    if building_id is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return
    period = ask_billing_period()
    if period is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    try:
        preview = building_service.preview_building_bills(building_id, period or None, user_id=user_id)
    except BillingError as e:
        console.print(f"[red]{e}[/red]")
        return

    if not preview.room_bills:
        console.print("[yellow]No occupied rooms for this period.[/yellow]")
        return

    currency = settings.default_currency
    table = Table(title=f"{preview.building_name}: {format_period(preview.billing_period)}")
    table.add_column("Room", style="bold")
    table.add_column("Tenant")
    table.add_column("People", justify="right")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Meters missing")

    for room in preview.room_bills:
        missing = ", ".join(cost.name for cost in room.meter_costs_to_input)
        table.add_row(
            f"{room.room_number} ({room.room_name})" if room.room_name else room.room_number,
            room.tenant_name,
            str(room.occupancy_count),
            str(len(room.calculated_items)),
            format_money(room.calculated_total, currency),
            missing or "-",
        )

    console.print()
    console.print(table)
    console.print(
        f"  [bold]{preview.total_rooms} rooms, total {format_money(preview.total_building_amount, currency)}[/bold]"
    )
    if preview.rooms_needing_meter_data:
        console.print(f"  [yellow]{preview.rooms_needing_meter_data} rooms need meter readings[/yellow]")
