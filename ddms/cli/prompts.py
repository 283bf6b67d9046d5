from __future__ import annotations

import questionary

from ddms.models.session import SessionPhase
from ddms.services.session_timeout import SessionTimeoutController


def check_session(controller: SessionTimeoutController) -> bool:
    """Handle a pending warning. Returns False when the session has ended."""
    if controller.phase == SessionPhase.WARNING:
        seconds = controller.remaining_time_ms // 1000
        stay = questionary.confirm(f"Session expires in {seconds}s. Stay logged in?", default=True).ask()
        if stay and controller.phase == SessionPhase.WARNING:
            controller.extend()
        elif not stay:
            controller.logout()
    return controller.session.is_authenticated and controller.phase == SessionPhase.ACTIVE


def ask(question: questionary.Question, controller: SessionTimeoutController):
    """Ask a question and count the answer as activity.

    Returns None once the session has ended, as if the prompt was cancelled.
    """
    answer = question.ask()
    controller.record_activity("keydown")
    if not check_session(controller):
        return None
    return answer
