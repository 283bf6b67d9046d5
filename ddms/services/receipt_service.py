from __future__ import annotations

import logging
from decimal import Decimal

from ddms.api.receipts import ReceiptApi
from ddms.errors import IllegalTransitionError, PermissionDeniedError
from ddms.models.auth import Customer, Particular
from ddms.models.receipt import Receipt, ReceiptApproval, ReceiptDraft, ReceiptState
from ddms.services.permission_service import PermissionGate
from ddms.services.receipt_state_machine import (
    RECEIPTS_RESOURCE,
    can_transition,
    payment_target,
)

logger = logging.getLogger(__name__)


class ReceiptService:
    """Receipt workflow on top of the REST API.

    Transitions are checked against the state machine and the user's
    permissions before any request is sent. After the backend accepts a
    command the receipt is fetched again; the local copy is never patched.
    """

    def __init__(self, receipt_api: ReceiptApi, gate: PermissionGate) -> None:
        self.receipt_api = receipt_api
        self.gate = gate

    # ---- queries ----

    def list_receipts(self, state: ReceiptState | None = None) -> list[Receipt]:
        result = self.receipt_api.list_receipts(state)
        logger.debug("Listed %d receipts state=%s", len(result), state.value if state else None)
        return result

    def get_receipt(self, receipt_id: str) -> Receipt:
        return self.receipt_api.get_receipt(receipt_id)

    def refresh(self, receipt: Receipt) -> Receipt:
        return self.receipt_api.get_receipt(receipt.id)

    def list_approvals(self, receipt_id: str) -> list[ReceiptApproval]:
        return self.receipt_api.list_approvals(receipt_id)

    def list_customers(self) -> list[Customer]:
        return self.receipt_api.list_customers()

    def list_particulars(self) -> list[Particular]:
        return [p for p in self.receipt_api.list_particulars() if p.active]

    # ---- create / edit ----

    def create_receipt(self, draft: ReceiptDraft) -> Receipt:
        self._require("create")
        self._validate_draft(draft)
        receipt = self.receipt_api.create_receipt(draft)
        logger.info("Receipt created: id=%s total=%s", receipt.id, draft.total_amount)
        return receipt

    def update_receipt(self, receipt: Receipt, draft: ReceiptDraft) -> Receipt:
        self._require("update")
        self._validate_draft(draft)
        self.receipt_api.update_receipt(receipt.id, draft)
        logger.info("Receipt updated: id=%s total=%s", receipt.id, draft.total_amount)
        return self.refresh(receipt)

    # ---- lifecycle ----

    def request_transition(self, receipt: Receipt, target: ReceiptState, notes: str | None = None) -> Receipt:
        self._check_transition(receipt, target)
        self._require("approve" if target == ReceiptState.APPROVED else "update")
        self.receipt_api.change_state(receipt.id, target, notes)
        logger.info("Receipt %s: %s -> %s accepted", receipt.id, receipt.receipt_state, target.value)
        return self.refresh(receipt)

    def approve(self, receipt: Receipt, notes: str | None = None) -> Receipt:
        self._check_transition(receipt, ReceiptState.APPROVED)
        self._require("approve")
        self.receipt_api.approve(receipt.id, notes)
        logger.info("Receipt %s approved", receipt.id)
        return self.refresh(receipt)

    def reject(self, receipt: Receipt, notes: str | None = None) -> Receipt:
        return self.request_transition(receipt, ReceiptState.UNPAID, notes)

    def cancel(self, receipt: Receipt, notes: str | None = None) -> Receipt:
        return self.request_transition(receipt, ReceiptState.CANCELLED, notes)

    def record_payment(self, receipt: Receipt, amount: Decimal, payment_details: str = "") -> Receipt:
        if amount <= 0:
            raise ValueError("Payment amount must be positive")
        target = payment_target(receipt, amount)
        self._check_transition(receipt, target)
        self._require("update")
        self.receipt_api.pay(receipt.id, amount, payment_details)
        logger.info("Payment of %s recorded for receipt %s (expecting %s)", amount, receipt.id, target.value)
        return self.refresh(receipt)

    # ---- guards ----

    def _check_transition(self, receipt: Receipt, target: ReceiptState) -> None:
        if not can_transition(receipt.receipt_state, target):
            logger.warning(
                "Rejected transition for receipt %s: %s -> %s",
                receipt.id,
                receipt.receipt_state,
                target.value,
            )
            raise IllegalTransitionError(receipt.receipt_state, target.value)

    def _require(self, action: str) -> None:
        if not self.gate.has_permission(RECEIPTS_RESOURCE, action):
            logger.warning("Permission denied: %s on %s", action, RECEIPTS_RESOURCE)
            raise PermissionDeniedError(RECEIPTS_RESOURCE, action)

    @staticmethod
    def _validate_draft(draft: ReceiptDraft) -> None:
        if not draft.customer_id:
            raise ValueError("Please select a customer")
        if not draft.items:
            raise ValueError("Please add at least one particular")
        if any(item.amount <= 0 for item in draft.items):
            raise ValueError("Particular amounts must be positive")
