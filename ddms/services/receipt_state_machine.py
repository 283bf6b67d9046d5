"""Receipt lifecycle rules.

Pure functions over ``ReceiptState``. The table below is a pre-filter for the
UI and the workflow service; the backend may still reject an allowed
transition and its answer wins.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel

from ddms.models.receipt import Receipt, ReceiptState
from ddms.services.permission_service import PermissionGate

RECEIPTS_RESOURCE = "receipts"

VALID_TRANSITIONS: dict[ReceiptState, frozenset[ReceiptState]] = {
    ReceiptState.DRAFT: frozenset({ReceiptState.UNPAID, ReceiptState.CANCELLED}),
    ReceiptState.UNPAID: frozenset(
        {
            ReceiptState.PENDING_APPROVAL,
            ReceiptState.PAID,
            ReceiptState.PARTIAL,
            ReceiptState.CANCELLED,
        }
    ),
    ReceiptState.PENDING_APPROVAL: frozenset(
        {ReceiptState.APPROVED, ReceiptState.UNPAID, ReceiptState.CANCELLED}
    ),
    ReceiptState.APPROVED: frozenset({ReceiptState.PAID, ReceiptState.PARTIAL, ReceiptState.CANCELLED}),
    ReceiptState.PAID: frozenset({ReceiptState.CANCELLED}),
    ReceiptState.PARTIAL: frozenset({ReceiptState.PAID, ReceiptState.CANCELLED}),
    ReceiptState.CANCELLED: frozenset(),
}

STATE_COLORS = {
    ReceiptState.DRAFT: "gray",
    ReceiptState.UNPAID: "red",
    ReceiptState.PENDING_APPROVAL: "yellow",
    ReceiptState.APPROVED: "blue",
    ReceiptState.PAID: "green",
    ReceiptState.PARTIAL: "orange",
    ReceiptState.CANCELLED: "red",
}
DEFAULT_COLOR = "gray"


def to_state(value: ReceiptState | str | None) -> ReceiptState | None:
    """Coerce a wire value to a state; None for anything unrecognised."""
    if isinstance(value, ReceiptState):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ReceiptState(value.upper())
    except ValueError:
        return None


def valid_transitions_from(state: ReceiptState | str | None) -> frozenset[ReceiptState]:
    current = to_state(state)
    if current is None:
        return frozenset()
    return VALID_TRANSITIONS.get(current, frozenset())


def can_transition(current: ReceiptState | str | None, target: ReceiptState | str | None) -> bool:
    wanted = to_state(target)
    if wanted is None:
        return False
    return wanted in valid_transitions_from(current)


def color_class_for(state: ReceiptState | str | None) -> str:
    current = to_state(state)
    if current is None:
        return DEFAULT_COLOR
    return STATE_COLORS.get(current, DEFAULT_COLOR)


def payment_target(receipt: Receipt, amount: Decimal) -> ReceiptState:
    """State a payment of ``amount`` would put the receipt in."""
    if receipt.paid_amount + amount >= receipt.total_amount:
        return ReceiptState.PAID
    return ReceiptState.PARTIAL


class ActionKind(str, Enum):
    SUBMIT = "submit"
    SEND_FOR_APPROVAL = "send_for_approval"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark_paid"
    COMPLETE_PAYMENT = "complete_payment"
    CANCEL = "cancel"


class ReceiptAction(BaseModel):
    kind: ActionKind
    label: str
    targets: frozenset[ReceiptState]
    permission: str = "update"


_SUBMIT = ReceiptAction(kind=ActionKind.SUBMIT, label="Submit Receipt", targets=frozenset({ReceiptState.UNPAID}))
_SEND_FOR_APPROVAL = ReceiptAction(
    kind=ActionKind.SEND_FOR_APPROVAL,
    label="Send for Approval",
    targets=frozenset({ReceiptState.PENDING_APPROVAL}),
)
_MARK_PAID = ReceiptAction(
    kind=ActionKind.MARK_PAID,
    label="Mark as Paid",
    targets=frozenset({ReceiptState.PAID, ReceiptState.PARTIAL}),
)
_APPROVE = ReceiptAction(
    kind=ActionKind.APPROVE,
    label="Approve",
    targets=frozenset({ReceiptState.APPROVED}),
    permission="approve",
)
_REJECT = ReceiptAction(kind=ActionKind.REJECT, label="Reject", targets=frozenset({ReceiptState.UNPAID}))
_COMPLETE_PAYMENT = ReceiptAction(
    kind=ActionKind.COMPLETE_PAYMENT,
    label="Complete Payment",
    targets=frozenset({ReceiptState.PAID}),
)
_CANCEL = ReceiptAction(kind=ActionKind.CANCEL, label="Cancel", targets=frozenset({ReceiptState.CANCELLED}))

_STATE_ACTIONS: dict[ReceiptState, tuple[ReceiptAction, ...]] = {
    ReceiptState.DRAFT: (_SUBMIT,),
    ReceiptState.UNPAID: (_SEND_FOR_APPROVAL, _MARK_PAID),
    ReceiptState.PENDING_APPROVAL: (_APPROVE, _REJECT),
    ReceiptState.APPROVED: (_MARK_PAID,),
    ReceiptState.PARTIAL: (_COMPLETE_PAYMENT,),
}


def available_actions(state: ReceiptState | str | None, gate: PermissionGate) -> list[ReceiptAction]:
    """Actions the UI offers for a receipt in ``state``.

    Nothing is offered to users who cannot update receipts. Approval also
    needs the ``approve`` permission.
    """
    current = to_state(state)
    if current is None or not gate.can_update(RECEIPTS_RESOURCE):
        return []

    actions = [
        action
        for action in _STATE_ACTIONS.get(current, ())
        if gate.has_permission(RECEIPTS_RESOURCE, action.permission)
    ]
    if current not in (ReceiptState.CANCELLED, ReceiptState.PAID):
        actions.append(_CANCEL)
    return actions
