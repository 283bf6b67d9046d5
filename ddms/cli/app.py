from __future__ import annotations

import logging

import questionary
from rich.console import Console

from ddms.api.auth import AuthApi
from ddms.api.client import ApiClient
from ddms.api.receipts import ReceiptApi
from ddms.cli.prompts import check_session
from ddms.cli.receipt_menu import receipts_menu
from ddms.errors import DDMSError
from ddms.models.session import SessionPhase
from ddms.services.auth_service import AuthService
from ddms.services.permission_service import PermissionGate
from ddms.services.receipt_service import ReceiptService
from ddms.services.receipt_state_machine import RECEIPTS_RESOURCE
from ddms.services.session_timeout import SessionTimeoutController
from ddms.session.context import AuthSession
from ddms.settings import settings

logger = logging.getLogger(__name__)

console = Console()


def _load_session() -> AuthSession:
    if not settings.session_file:
        return AuthSession()
    try:
        return AuthSession.load(settings.session_file)
    except ValueError:
        logger.warning("Ignoring unreadable session file %s", settings.session_file)
        return AuthSession()


def _save_session(session: AuthSession) -> None:
    if settings.session_file:
        session.save(settings.session_file)


def _build_services(session: AuthSession) -> tuple[ApiClient, AuthService, ReceiptService, PermissionGate]:
    client = ApiClient(session)
    gate = PermissionGate(session)
    return (
        client,
        AuthService(AuthApi(client), session),
        ReceiptService(ReceiptApi(client), gate),
        gate,
    )


def _build_controller(session: AuthSession, auth_service: AuthService) -> SessionTimeoutController:
    def _on_warning(remaining_ms: int) -> None:
        console.print(
            f"\n[yellow bold]Your session will expire in {remaining_ms // 1000}s. "
            "Answer the next prompt to stay logged in.[/yellow bold]"
        )

    def _redirect(path: str) -> None:
        logger.debug("Redirecting to %s", path)
        console.print("[cyan]Returning to login.[/cyan]")

    return SessionTimeoutController(
        session,
        auth_service.logout,
        on_warning=_on_warning,
        on_notice=lambda message: console.print(f"[cyan]{message}[/cyan]"),
        redirect=_redirect,
    )


def login_menu(auth_service: AuthService) -> bool:
    """Prompt until login succeeds. Returns False when the user gives up."""
    console.print()
    console.print("[bold]Login[/bold]", style="cyan")

    while True:
        mobile = questionary.text("Mobile number:").ask()
        if not mobile:
            return False

        method = questionary.select("Login with", choices=["Password", "OTP", "Cancel"]).ask()
        if method is None or method == "Cancel":
            return False

        try:
            if method == "OTP":
                auth_service.send_otp(mobile)
                otp = questionary.text("OTP:").ask() or ""
                user = auth_service.login(mobile, otp=otp)
            else:
                password = questionary.password("Password:").ask() or ""
                user = auth_service.login(mobile, password=password)
        except (DDMSError, ValueError) as e:
            console.print(f"[red]Login failed: {e}[/red]")
            continue

        console.print(f"[green bold]Welcome, {user.name}![/green bold]")
        return True


def switch_store_menu(auth_service: AuthService, session: AuthSession) -> None:
    user = session.user
    if user is None or len(user.stores) < 2:
        console.print("[yellow]No other store available.[/yellow]")
        return
    labels = {f"{s.name} ({s.id})": s for s in user.stores}
    choice = questionary.select("Store:", choices=list(labels) + ["Back"]).ask()
    if choice is None or choice == "Back":
        return
    try:
        store = auth_service.switch_store(labels[choice].id)
    except (DDMSError, ValueError) as e:
        console.print(f"[red]Store switch failed: {e}[/red]")
        return
    console.print(f"[green]Now working in {store.name}[/green]")


def main_menu() -> None:
    session = _load_session()
    client, auth_service, receipt_service, gate = _build_services(session)
    controller = _build_controller(session, auth_service)
    client.on_auth_failure = controller.logout

    console.print()
    console.print("[bold]Donation Management[/bold]", style="cyan")

    try:
        while True:
            if not session.is_authenticated:
                if not login_menu(auth_service):
                    break
            if controller.phase in (SessionPhase.DISABLED, SessionPhase.EXPIRED):
                controller.enable()
            if not check_session(controller):
                continue

            store = session.current_store
            title = f"Main Menu ({store.name})" if store is not None else "Main Menu"
            choices = []
            if gate.can_view(RECEIPTS_RESOURCE):
                choices.append("Receipts")
            choices += ["Switch Store", "Logout", "Exit"]

            choice = questionary.select(title, choices=choices).ask()
            controller.record_activity("keydown")
            if not check_session(controller):
                continue

            if choice is None or choice == "Exit":
                console.print("[bold]Goodbye![/bold]")
                break
            elif choice == "Receipts":
                receipts_menu(receipt_service, gate, controller)
            elif choice == "Switch Store":
                switch_store_menu(auth_service, session)
            elif choice == "Logout":
                controller.logout()
    finally:
        controller.close()
        _save_session(session)
        client.close()
