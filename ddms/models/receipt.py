from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import field_validator

from ddms.models.base import ApiModel


class ReceiptState(str, Enum):
    DRAFT = "DRAFT"
    UNPAID = "UNPAID"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    PAID = "PAID"
    PARTIAL = "PARTIAL"
    CANCELLED = "CANCELLED"


class PaymentMode(str, Enum):
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    ONLINE = "ONLINE"


class ReceiptItem(ApiModel):
    id: str | None = None
    particular_id: str
    particular_name: str = ""
    amount: Decimal


class Receipt(ApiModel):
    id: str
    receipt_number: str = ""
    date: str = ""
    reference_number: str | None = None
    customer_id: str = ""
    customer_name: str = ""
    items: list[ReceiptItem] = []
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    # Kept as the raw upper-case string so that states unknown to this client
    # survive parsing; the state machine treats them as terminal.
    receipt_state: str = ReceiptState.DRAFT.value
    payment_mode: str | None = None
    approved_by: str | None = None
    approved_at: str | None = None
    store_id: str | None = None

    @field_validator("receipt_state", mode="before")
    @classmethod
    def _normalise_state(cls, value: object) -> str:
        if isinstance(value, ReceiptState):
            return value.value
        return str(value or "").upper()

    @property
    def state(self) -> ReceiptState | None:
        try:
            return ReceiptState(self.receipt_state)
        except ValueError:
            return None

    @property
    def balance_due(self) -> Decimal:
        return max(Decimal("0"), self.total_amount - self.paid_amount)


class ReceiptDraftItem(ApiModel):
    particular_id: str
    amount: Decimal


class OnlinePaymentDetails(ApiModel):
    upi_id: str | None = None
    transaction_reference: str


class ReceiptDraft(ApiModel):
    """Create/edit payload assembled on the client."""

    date: str
    customer_id: str
    items: list[ReceiptDraftItem] = []
    payment_mode: PaymentMode = PaymentMode.CASH
    reference_number: str | None = None
    online_payment_details: OnlinePaymentDetails | None = None

    @property
    def total_amount(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        for item, source in zip(payload["items"], self.items):
            item["amount"] = float(source.amount)
        payload["totalAmount"] = float(self.total_amount)
        return payload


class ApprovalActor(ApiModel):
    id: str
    name: str = ""


class ReceiptApproval(ApiModel):
    id: str
    from_state: str
    to_state: str
    approved_by: ApprovalActor | None = None
    approved_at: str = ""
    approval_notes: str | None = None
