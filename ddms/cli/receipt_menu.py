from __future__ import annotations

from datetime import date

import questionary
from rich.console import Console
from rich.table import Table

from ddms.cli.prompts import ask
from ddms.errors import DDMSError
from ddms.models import format_inr, parse_amount
from ddms.models.receipt import PaymentMode, Receipt, ReceiptDraft, ReceiptDraftItem, ReceiptState
from ddms.services.permission_service import PermissionGate
from ddms.services.receipt_service import ReceiptService
from ddms.services.receipt_state_machine import (
    RECEIPTS_RESOURCE,
    ActionKind,
    ReceiptAction,
    available_actions,
    color_class_for,
)
from ddms.services.session_timeout import SessionTimeoutController

console = Console()

BACK = "Back"
ALL_STATES = "All"

# Colour classes that are not rich colour names.
RICH_COLORS = {"gray": "grey50", "orange": "orange1"}


def _state_label(state: str) -> str:
    color = color_class_for(state)
    style = RICH_COLORS.get(color, color)
    return f"[{style}]{state.replace('_', ' ')}[/{style}]"


def receipts_menu(service: ReceiptService, gate: PermissionGate, controller: SessionTimeoutController) -> None:
    while True:
        choices = ["List Receipts"]
        if gate.can_create(RECEIPTS_RESOURCE):
            choices.append("Create Receipt")
        choices.append(BACK)

        choice = ask(questionary.select("Receipts", choices=choices), controller)
        if choice is None or choice == BACK or not controller.session.is_authenticated:
            break
        elif choice == "List Receipts":
            list_receipts_menu(service, gate, controller)
        elif choice == "Create Receipt":
            create_receipt_menu(service, controller)


def list_receipts_menu(service: ReceiptService, gate: PermissionGate, controller: SessionTimeoutController) -> None:
    state_choice = ask(
        questionary.select("Filter by state", choices=[ALL_STATES] + [s.value for s in ReceiptState]),
        controller,
    )
    if state_choice is None:
        return
    state = None if state_choice == ALL_STATES else ReceiptState(state_choice)

    try:
        receipts = service.list_receipts(state)
    except DDMSError as e:
        console.print(f"[red]Failed to load receipts: {e}[/red]")
        return

    if not receipts:
        console.print("[yellow]No receipts found.[/yellow]")
        return

    table = Table(title="Receipts")
    table.add_column("#", justify="right")
    table.add_column("Number")
    table.add_column("Date")
    table.add_column("Customer")
    table.add_column("Total", justify="right")
    table.add_column("State", justify="center")
    for i, r in enumerate(receipts, 1):
        table.add_row(
            str(i),
            r.receipt_number,
            r.date,
            r.customer_name,
            format_inr(r.total_amount),
            _state_label(r.receipt_state),
        )
    console.print(table)

    choices = [f"{i} - {r.receipt_number or r.id}" for i, r in enumerate(receipts, 1)]
    choices.append(BACK)
    choice = ask(questionary.select("Select a receipt:", choices=choices), controller)
    if choice is None or choice == BACK:
        return

    idx = int(choice.split(" - ")[0]) - 1
    receipt_detail_menu(receipts[idx], service, gate, controller)


def _show_receipt_detail(receipt: Receipt, service: ReceiptService) -> None:
    console.print()
    console.print(f"[bold]Receipt {receipt.receipt_number or receipt.id}[/bold]  {_state_label(receipt.receipt_state)}")
    console.print(f"  Customer: {receipt.customer_name}")
    console.print(f"  Date: {receipt.date}")

    items = Table()
    items.add_column("Particular")
    items.add_column("Amount", justify="right")
    for item in receipt.items:
        items.add_row(item.particular_name or item.particular_id, format_inr(item.amount))
    console.print(items)
    console.print(f"  [bold]Total: {format_inr(receipt.total_amount)}[/bold]")
    console.print(f"  Paid: {format_inr(receipt.paid_amount)}")
    if receipt.payment_mode:
        console.print(f"  Payment mode: {receipt.payment_mode}")

    try:
        approvals = service.list_approvals(receipt.id)
    except DDMSError as e:
        console.print(f"[red]Failed to load approval history: {e}[/red]")
        return
    for a in approvals:
        who = a.approved_by.name if a.approved_by else "-"
        console.print(f"  [dim]{a.approved_at} {a.from_state} -> {a.to_state} by {who}[/dim]")


def receipt_detail_menu(
    receipt: Receipt,
    service: ReceiptService,
    gate: PermissionGate,
    controller: SessionTimeoutController,
) -> None:
    while controller.session.is_authenticated:
        _show_receipt_detail(receipt, service)

        actions = available_actions(receipt.receipt_state, gate)
        by_label = {a.label: a for a in actions}
        choice = ask(
            questionary.select("Action", choices=list(by_label) + [BACK]),
            controller,
        )
        if choice is None or choice == BACK:
            return

        try:
            receipt = _run_action(by_label[choice], receipt, service, controller)
        except DDMSError as e:
            console.print(f"[red]{e}[/red]")
        except ValueError as e:
            console.print(f"[red]{e}[/red]")


def _run_action(
    action: ReceiptAction,
    receipt: Receipt,
    service: ReceiptService,
    controller: SessionTimeoutController,
) -> Receipt:
    # Every prompt may end the session; nothing is sent after that.
    session = controller.session

    if action.kind == ActionKind.APPROVE:
        notes = ask(questionary.text("Approval notes (optional):"), controller) or None
        if not session.is_authenticated:
            return receipt
        updated = service.approve(receipt, notes)
        console.print("[green]Receipt approved successfully[/green]")
        return updated

    if action.kind in (ActionKind.MARK_PAID, ActionKind.COMPLETE_PAYMENT):
        default = f"{receipt.balance_due:.2f}"
        text = ask(questionary.text("Amount received:", default=default), controller)
        if not session.is_authenticated:
            return receipt
        amount = parse_amount(text or "")
        if amount is None:
            raise ValueError("Invalid amount")
        details = ask(questionary.text("Payment details (optional):"), controller) or ""
        if not session.is_authenticated:
            return receipt
        updated = service.record_payment(receipt, amount, details)
        console.print("[green]Payment recorded successfully[/green]")
        return updated

    target = next(iter(action.targets))
    notes = None
    if action.kind in (ActionKind.REJECT, ActionKind.CANCEL):
        confirmed = ask(questionary.confirm(f"{action.label} this receipt?", default=False), controller)
        if not confirmed:
            return receipt
        notes = ask(questionary.text("Notes (optional):"), controller) or None
        if not session.is_authenticated:
            return receipt
    updated = service.request_transition(receipt, target, notes)
    console.print("[green]Receipt state updated successfully[/green]")
    return updated


def create_receipt_menu(service: ReceiptService, controller: SessionTimeoutController) -> None:
    console.print()
    console.print("[bold]New Receipt[/bold]", style="cyan")

    try:
        customers = service.list_customers()
        particulars = service.list_particulars()
    except DDMSError as e:
        console.print(f"[red]Failed to load form data: {e}[/red]")
        return

    if not customers or not particulars:
        console.print("[yellow]Customers and particulars must exist before creating a receipt.[/yellow]")
        return

    customer_labels = {f"{c.name} ({c.account_number or c.id})": c for c in customers}
    customer_choice = ask(questionary.select("Customer:", choices=list(customer_labels)), controller)
    if customer_choice is None:
        return

    particular_labels = {p.name: p for p in particulars}
    items: list[ReceiptDraftItem] = []
    while True:
        name = ask(
            questionary.select("Add particular:", choices=list(particular_labels) + ["Done"]),
            controller,
        )
        if name is None or name == "Done":
            break
        text = ask(questionary.text(f"  Amount for '{name}':"), controller)
        if not controller.session.is_authenticated:
            return
        amount = parse_amount(text or "")
        if amount is None or amount <= 0:
            console.print("[red]Invalid amount. Try again.[/red]")
            continue
        items.append(ReceiptDraftItem(particular_id=particular_labels[name].id, amount=amount))

    mode = ask(questionary.select("Payment mode:", choices=[m.value for m in PaymentMode]), controller)
    if mode is None:
        return
    receipt_date = ask(questionary.text("Date (YYYY-MM-DD):", default=date.today().isoformat()), controller)
    if not controller.session.is_authenticated:
        return

    draft = ReceiptDraft(
        date=receipt_date or date.today().isoformat(),
        customer_id=customer_labels[customer_choice].id,
        items=items,
        payment_mode=PaymentMode(mode),
    )
    console.print(f"  [bold]Total: {format_inr(draft.total_amount)}[/bold]")

    try:
        receipt = service.create_receipt(draft)
    except (DDMSError, ValueError) as e:
        console.print(f"[red]Failed to create receipt: {e}[/red]")
        return
    console.print(f"[green bold]Receipt {receipt.receipt_number or receipt.id} created![/green bold]")
