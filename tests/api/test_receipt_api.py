from decimal import Decimal
from unittest.mock import MagicMock

from ddms.api.auth import AuthApi
from ddms.api.receipts import ReceiptApi
from ddms.models.envelope import DDMSResponse
from ddms.models.receipt import ReceiptDraft, ReceiptDraftItem, ReceiptState


def _envelope(data) -> DDMSResponse:
    return DDMSResponse.model_validate({"DDMS_status": "success", "DDMS_data": data})


RECEIPT_ROW = {
    "id": 12,
    "receiptNumber": "RCPT-0012",
    "date": "2025-03-14",
    "customerName": "Lakshmi Devi",
    "items": [{"particularId": 3, "particularName": "Annadanam", "amount": 1001.5}],
    "totalAmount": 1001.5,
    "paidAmount": 0,
    "receiptState": "pending_approval",
}


class TestReceiptApi:
    def setup_method(self):
        self.mock_client = MagicMock()
        self.api = ReceiptApi(self.mock_client)

    def test_list_receipts_with_state_filter(self):
        self.mock_client.get.return_value = _envelope({"receipts": [RECEIPT_ROW]})
        receipts = self.api.list_receipts(ReceiptState.PENDING_APPROVAL)

        self.mock_client.get.assert_called_once_with("/receipts", params={"state": "pending_approval"})
        assert receipts[0].id == "12"
        assert receipts[0].state == ReceiptState.PENDING_APPROVAL
        assert receipts[0].total_amount == Decimal("1001.5")

    def test_list_receipts_without_filter(self):
        self.mock_client.get.return_value = _envelope(None)
        assert self.api.list_receipts() == []
        self.mock_client.get.assert_called_once_with("/receipts", params=None)

    def test_change_state_body(self):
        self.api.change_state("12", ReceiptState.CANCELLED, "duplicate")
        self.mock_client.post.assert_called_once_with(
            "/receipts/12/state-change", {"newState": "CANCELLED", "notes": "duplicate"}
        )

    def test_change_state_without_notes(self):
        self.api.change_state("12", ReceiptState.UNPAID)
        self.mock_client.post.assert_called_once_with("/receipts/12/state-change", {"newState": "UNPAID"})

    def test_approve_and_pay(self):
        self.api.approve("12", "verified")
        self.mock_client.post.assert_called_with("/receipts/12/approve", {"notes": "verified"})

        self.api.pay("12", Decimal("250.50"), "UPI ref 991")
        self.mock_client.post.assert_called_with(
            "/receipts/12/pay", {"paidAmount": 250.5, "paymentDetails": "UPI ref 991"}
        )

    def test_create_receipt_sends_total(self):
        self.mock_client.post.return_value = _envelope(RECEIPT_ROW)
        draft = ReceiptDraft(
            date="2025-03-14",
            customer_id="c-1",
            items=[
                ReceiptDraftItem(particular_id="p-1", amount=Decimal("1000")),
                ReceiptDraftItem(particular_id="p-2", amount=Decimal("1.50")),
            ],
        )
        self.api.create_receipt(draft)

        url, payload = self.mock_client.post.call_args.args
        assert url == "/receipts"
        assert payload["customerId"] == "c-1"
        assert payload["paymentMode"] == "CASH"
        assert payload["totalAmount"] == 1001.5
        assert payload["items"] == [
            {"particularId": "p-1", "amount": 1000.0},
            {"particularId": "p-2", "amount": 1.5},
        ]

    def test_list_approvals(self):
        self.mock_client.get.return_value = _envelope(
            [
                {
                    "id": 1,
                    "fromState": "PENDING_APPROVAL",
                    "toState": "APPROVED",
                    "approvedBy": {"id": 2, "name": "Trustee"},
                    "approvedAt": "2025-03-15T10:00:00Z",
                }
            ]
        )
        approvals = self.api.list_approvals("12")
        assert approvals[0].approved_by.name == "Trustee"
        assert approvals[0].to_state == "APPROVED"

    def test_lookups_accept_wrapped_and_bare_lists(self):
        self.mock_client.get.return_value = _envelope({"customers": [{"id": 1, "name": "Lakshmi"}]})
        assert self.api.list_customers()[0].name == "Lakshmi"

        self.mock_client.get.return_value = _envelope([{"id": 3, "name": "Annadanam"}])
        assert self.api.list_particulars()[0].id == "3"
        self.mock_client.get.assert_called_with("/particulars", params={"type": "RECEIPT"})


class TestAuthApi:
    def test_login_omits_missing_fields(self):
        client = MagicMock()
        AuthApi(client).login("9876543210", otp="123456")
        client.post.assert_called_once_with("/auth/login", {"mobile": "9876543210", "otp": "123456"})

    def test_switch_store(self):
        client = MagicMock()
        AuthApi(client).switch_store("s-2")
        client.post.assert_called_once_with("/store-context/switch", {"storeId": "s-2"})
