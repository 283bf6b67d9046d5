from __future__ import annotations

import logging
from decimal import Decimal

from ddms.api.client import ApiClient
from ddms.models.auth import Customer, Particular
from ddms.models.receipt import Receipt, ReceiptApproval, ReceiptDraft, ReceiptState

logger = logging.getLogger(__name__)


class ReceiptApi:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    def list_receipts(self, state: ReceiptState | None = None) -> list[Receipt]:
        params = {"state": state.value.lower()} if state is not None else None
        data = self.client.get("/receipts", params=params).data or {}
        rows = data.get("receipts", []) if isinstance(data, dict) else data
        return [Receipt.model_validate(row) for row in rows]

    def get_receipt(self, receipt_id: str) -> Receipt:
        return Receipt.model_validate(self.client.get(f"/receipts/{receipt_id}").data)

    def create_receipt(self, draft: ReceiptDraft) -> Receipt:
        return Receipt.model_validate(self.client.post("/receipts", draft.to_payload()).data)

    def update_receipt(self, receipt_id: str, draft: ReceiptDraft) -> Receipt:
        return Receipt.model_validate(self.client.put(f"/receipts/{receipt_id}", draft.to_payload()).data)

    def change_state(self, receipt_id: str, new_state: ReceiptState, notes: str | None = None) -> None:
        body: dict = {"newState": new_state.value.upper()}
        if notes:
            body["notes"] = notes
        self.client.post(f"/receipts/{receipt_id}/state-change", body)

    def approve(self, receipt_id: str, notes: str | None = None) -> None:
        self.client.post(f"/receipts/{receipt_id}/approve", {"notes": notes} if notes else {})

    def pay(self, receipt_id: str, paid_amount: Decimal, payment_details: str) -> None:
        self.client.post(
            f"/receipts/{receipt_id}/pay",
            {"paidAmount": float(paid_amount), "paymentDetails": payment_details},
        )

    def list_approvals(self, receipt_id: str) -> list[ReceiptApproval]:
        rows = self.client.get(f"/receipts/{receipt_id}/approvals").data or []
        return [ReceiptApproval.model_validate(row) for row in rows]

    # ---- lookups used when building a receipt ----

    def list_customers(self) -> list[Customer]:
        data = self.client.get("/customers").data or []
        rows = data.get("customers", []) if isinstance(data, dict) else data
        return [Customer.model_validate(row) for row in rows]

    def list_particulars(self) -> list[Particular]:
        data = self.client.get("/particulars", params={"type": "RECEIPT"}).data or []
        rows = data.get("particulars", []) if isinstance(data, dict) else data
        return [Particular.model_validate(row) for row in rows]
