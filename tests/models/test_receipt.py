from decimal import Decimal

from ddms.models.receipt import PaymentMode, Receipt, ReceiptDraft, ReceiptDraftItem, ReceiptState


class TestReceipt:
    def test_parses_camel_case(self):
        receipt = Receipt.model_validate(
            {"id": 5, "receiptNumber": "RCPT-5", "receiptState": "paid", "totalAmount": "10.00", "paidAmount": 10}
        )
        assert receipt.id == "5"
        assert receipt.receipt_number == "RCPT-5"
        assert receipt.receipt_state == "PAID"
        assert receipt.state == ReceiptState.PAID

    def test_unknown_state_survives_parsing(self):
        receipt = Receipt.model_validate({"id": 1, "receiptState": "archived"})
        assert receipt.receipt_state == "ARCHIVED"
        assert receipt.state is None

    def test_accepts_enum_state(self):
        assert Receipt(id="1", receipt_state=ReceiptState.PARTIAL).receipt_state == "PARTIAL"

    def test_balance_due(self, sample_receipt):
        assert sample_receipt(paid_amount=Decimal("400")).balance_due == Decimal("1100")
        assert sample_receipt(paid_amount=Decimal("2000")).balance_due == Decimal("0")


class TestReceiptDraft:
    def test_total_is_sum_of_items(self):
        draft = ReceiptDraft(
            date="2025-03-14",
            customer_id="c-1",
            items=[
                ReceiptDraftItem(particular_id="p-1", amount=Decimal("100.25")),
                ReceiptDraftItem(particular_id="p-2", amount=Decimal("50")),
            ],
        )
        assert draft.total_amount == Decimal("150.25")

    def test_empty_total(self):
        assert ReceiptDraft(date="2025-03-14", customer_id="c-1").total_amount == Decimal("0")

    def test_payload_includes_online_details(self):
        draft = ReceiptDraft.model_validate(
            {
                "date": "2025-03-14",
                "customerId": "c-1",
                "items": [{"particularId": "p-1", "amount": 51}],
                "paymentMode": "ONLINE",
                "onlinePaymentDetails": {"transactionReference": "UTR123"},
            }
        )
        payload = draft.to_payload()
        assert draft.payment_mode == PaymentMode.ONLINE
        assert payload["onlinePaymentDetails"] == {"transactionReference": "UTR123"}
        assert payload["totalAmount"] == 51.0
