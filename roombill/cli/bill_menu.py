from __future__ import annotations

from decimal import Decimal, InvalidOperation

import questionary
from rich.console import Console
from rich.table import Table

from roombill.cli.building_menu import ask_billing_period
from roombill.constants import format_period
from roombill.exceptions import BillingError
from roombill.models.bill import Bill, BillStatus, BillUpdate
from roombill.models.meter_reading import MeterReadingInput
from roombill.models.room import MeteredCost
from roombill.money import format_money, parse_money
from roombill.services.bill_service import BillService
from roombill.services.cost_calculator import format_quantity
from roombill.services.proration import resolve_billing_period
from roombill.settings import settings

console = Console()

STATUS_STYLES = {
    BillStatus.DRAFT: "yellow",
    BillStatus.PENDING: "cyan",
    BillStatus.PAID: "green",
}


def _format_amount_input(amount: int, currency: str) -> str:
    """Format an amount as a default input value: 51613 VND -> '51613', 1250 USD -> '12.50'"""
    return format_money(amount, currency).split(" ")[0].replace(",", "")


def _bill_currency(bill: Bill) -> str:
    return bill.items[0].currency if bill.items else settings.default_currency


def _ask_decimal(prompt: str, default: str = "") -> Decimal | None:
    while True:
        raw = questionary.text(prompt, default=default).ask()
        if raw is None:
            return None
        try:
            value = Decimal(raw.strip())
        except InvalidOperation:
            value = None
        if value is not None and value.is_finite() and value >= 0:
            return value
        console.print("[red]Invalid reading. Try again.[/red]")


def _ask_readings(costs: list[MeteredCost]) -> list[MeterReadingInput] | None:
    readings: list[MeterReadingInput] = []
    for cost in costs:
        if cost.id is None:
            raise ValueError("Metered cost must have an id")
        console.print(f"  [bold]{cost.name}[/bold] ({format_money(cost.unit_price, cost.currency)} / {cost.unit})")
        default_last = format_quantity(cost.meter_reading) if cost.meter_reading is not None else ""
        last = _ask_decimal("    Previous reading:", default_last)
        if last is None:
            return None
        current = _ask_decimal("    Current reading:")
        if current is None:
            return None
        readings.append(MeterReadingInput(room_cost_id=cost.id, current_reading=current, last_reading=last))
    return readings


def _show_bill_detail(bill: Bill) -> None:
    currency = _bill_currency(bill)
    table = Table()
    table.add_column("Item")
    table.add_column("Qty", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("Amount", justify="right")

    for item in bill.items:
        table.add_row(
            item.item_name,
            format_quantity(item.quantity),
            format_money(item.unit_price, item.currency),
            format_money(item.amount, item.currency),
        )

    console.print(table)
    console.print(f"  Subtotal: {format_money(bill.subtotal, currency)}")
    if bill.discount_amount:
        console.print(f"  Discount: -{format_money(bill.discount_amount, currency)}")
    if bill.tax_amount:
        console.print(f"  Tax: {format_money(bill.tax_amount, currency)}")
    console.print(f"  [bold]Total: {format_money(bill.total_amount, currency)}[/bold]")
    console.print(f"  Remaining: {format_money(bill.remaining_amount, currency)}")
    style = STATUS_STYLES.get(bill.status, "")
    console.print(f"  Status: [{style}]{bill.status.value}[/{style}]")
    if bill.requires_meter_data:
        console.print("  [yellow]Waiting for meter readings[/yellow]")
    if bill.due_date:
        console.print(f"  Due: {bill.due_date.strftime('%d/%m/%Y')}")
    if bill.notes:
        console.print(f"  Notes: {bill.notes}")


def list_bills_menu(bill_service: BillService, user_id: int) -> None:
    bills = bill_service.list_bills_for_owner(user_id)

    if not bills:
        console.print("[yellow]No bills found.[/yellow]")
        return

    table = Table(title="Bills")
    table.add_column("#", style="dim")
    table.add_column("Period", style="bold")
    table.add_column("Room")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    for b in bills:
        style = STATUS_STYLES.get(b.status, "")
        table.add_row(
            str(b.id),
            format_period(b.billing_period),
            str(b.room_instance_id),
            format_money(b.total_amount, _bill_currency(b)),
            f"[{style}]{b.status.value}[/{style}]",
        )

    console.print()
    console.print(table)
    console.print()

    bill_choices = {f"{b.id} - {format_period(b.billing_period)}": b for b in bills}
    choices = list(bill_choices.keys()) + ["Back"]
    choice = questionary.select("Select a bill:", choices=choices).ask()

    if choice is None or choice == "Back":
        return

    bill = bill_service.get_bill(bill_choices[choice].id)
    if bill is None:
        console.print("[red]Bill not found.[/red]")
        return

    _bill_detail_menu(bill, bill_service, user_id)


def _bill_detail_menu(bill: Bill, bill_service: BillService, user_id: int) -> None:
    while True:
        console.print()
        console.print(f"[bold cyan]Bill {bill.id}: {format_period(bill.billing_period)}[/bold cyan]")
        _show_bill_detail(bill)

        if bill.is_paid:
            actions = ["Back"]
        else:
            actions = ["Enter Meter Readings", "Edit Bill", "Mark as Paid", "Delete Bill", "Back"]
        action = questionary.select("Action:", choices=actions).ask()

        if action is None or action == "Back":
            return

        try:
            if action == "Enter Meter Readings":
                bill = enter_meter_readings_menu(bill, bill_service, user_id)
            elif action == "Edit Bill":
                bill = edit_bill_menu(bill, bill_service, user_id)
            elif action == "Mark as Paid":
                if questionary.confirm("Mark this bill as paid in full?", default=False).ask():
                    bill = bill_service.mark_bill_as_paid(bill.id, user_id)
                    console.print("[green]Bill marked as paid.[/green]")
            elif action == "Delete Bill":
                if questionary.confirm("Delete this bill?", default=False).ask():
                    bill_service.delete_bill(bill.id, user_id)
                    console.print("[green]Bill deleted.[/green]")
                    return
        except BillingError as e:
            console.print(f"[red]{e}[/red]")


def enter_meter_readings_menu(bill: Bill, bill_service: BillService, user_id: int) -> Bill:
    costs = bill_service.metered_costs_for_instance(bill.room_instance_id)
    if not costs:
        console.print("[yellow]This room has no metered costs.[/yellow]")
        return bill

    readings = _ask_readings(costs)
    if readings is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return bill

    raw = questionary.text("Occupants:", default=str(bill.occupancy_count)).ask()
    occupancy = int(raw) if raw and raw.isdigit() and int(raw) > 0 else None

    updated = bill_service.update_meter_data(bill.id, user_id, readings, occupancy)
    console.print(f"[green]Bill updated. Total: {format_money(updated.total_amount, _bill_currency(updated))}[/green]")
    if updated.status == BillStatus.PENDING and bill.status == BillStatus.DRAFT:
        console.print("[green]Bill is ready and the tenant has been notified.[/green]")
    return updated


def _ask_amount(prompt: str, current: int, currency: str) -> int | None:
    while True:
        raw = questionary.text(prompt, default=_format_amount_input(current, currency)).ask()
        if raw is None:
            return None
        parsed = parse_money(raw, currency)
        if parsed is not None and parsed >= 0:
            return parsed
        console.print("[red]Invalid amount. Try again.[/red]")


def edit_bill_menu(bill: Bill, bill_service: BillService, user_id: int) -> Bill:
    console.print()
    console.print("[bold]Edit Bill[/bold]", style="cyan")
    currency = _bill_currency(bill)

    discount = _ask_amount("Discount:", bill.discount_amount, currency)
    if discount is None:
        return bill
    tax = _ask_amount("Tax:", bill.tax_amount, currency)
    if tax is None:
        return bill
    notes = questionary.text("Notes:", default=bill.notes).ask()

    updated = bill_service.update_bill(
        bill.id,
        user_id,
        BillUpdate(discount_amount=discount, tax_amount=tax, notes=notes),
    )
    console.print(f"[green]Bill updated. Total: {format_money(updated.total_amount, currency)}[/green]")
    return updated


def create_bill_for_room_menu(bill_service: BillService, user_id: int) -> None:
    console.print()
    console.print("[bold]Create Bill for Room[/bold]", style="cyan")

    raw_id = questionary.text("Room instance id:").ask()
    if not raw_id or not raw_id.isdigit():
        console.print("[yellow]Cancelled.[/yellow]")
        return
    room_instance_id = int(raw_id)

    period_text = ask_billing_period()
    if period_text is None:
        console.print("[yellow]Cancelled.[/yellow]")
        return
    period = resolve_billing_period(period_text or None)

    raw_occupancy = questionary.text("Occupants:", default="1").ask()
    if not raw_occupancy or not raw_occupancy.isdigit() or int(raw_occupancy) < 1:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    try:
        costs = bill_service.metered_costs_for_instance(room_instance_id)
        readings = _ask_readings(costs) if costs else []
        if readings is None:
            console.print("[yellow]Cancelled.[/yellow]")
            return
        notes = questionary.text("Notes (optional):").ask() or ""
        bill = bill_service.create_bill_for_room(
            user_id,
            room_instance_id,
            period,
            int(raw_occupancy),
            readings,
            notes=notes,
        )
    except BillingError as e:
        console.print(f"[red]{e}[/red]")
        return

    console.print()
    console.print(f"[green bold]Bill created for {format_period(bill.billing_period)}![/green bold]")
    _show_bill_detail(bill)
