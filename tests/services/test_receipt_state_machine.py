from decimal import Decimal
from itertools import product
from unittest.mock import MagicMock

import pytest

from ddms.models.receipt import ReceiptState
from ddms.services.receipt_state_machine import (
    ActionKind,
    available_actions,
    can_transition,
    color_class_for,
    payment_target,
    valid_transitions_from,
)

S = ReceiptState

EXPECTED_EDGES = {
    (S.DRAFT, S.UNPAID),
    (S.DRAFT, S.CANCELLED),
    (S.UNPAID, S.PENDING_APPROVAL),
    (S.UNPAID, S.PAID),
    (S.UNPAID, S.PARTIAL),
    (S.UNPAID, S.CANCELLED),
    (S.PENDING_APPROVAL, S.APPROVED),
    (S.PENDING_APPROVAL, S.UNPAID),
    (S.PENDING_APPROVAL, S.CANCELLED),
    (S.APPROVED, S.PAID),
    (S.APPROVED, S.PARTIAL),
    (S.APPROVED, S.CANCELLED),
    (S.PAID, S.CANCELLED),
    (S.PARTIAL, S.PAID),
    (S.PARTIAL, S.CANCELLED),
}


def _gate(*granted: str) -> MagicMock:
    gate = MagicMock()
    gate.has_permission.side_effect = lambda resource, action: action in granted
    gate.can_update.side_effect = lambda resource: "update" in granted
    return gate


class TestCanTransition:
    def test_matches_table_for_every_pair(self):
        for current, target in product(S, S):
            assert can_transition(current, target) is ((current, target) in EXPECTED_EDGES), (current, target)

    def test_cancelled_is_terminal(self):
        assert valid_transitions_from(S.CANCELLED) == frozenset()
        assert not any(can_transition(S.CANCELLED, target) for target in S)

    def test_not_symmetric(self):
        assert can_transition(S.UNPAID, S.PENDING_APPROVAL) is True
        assert can_transition(S.PENDING_APPROVAL, S.UNPAID) is True
        assert can_transition(S.PAID, S.UNPAID) is False

    def test_accepts_wire_strings(self):
        assert can_transition("UNPAID", "PAID") is True
        assert can_transition("unpaid", "pending_approval") is True

    @pytest.mark.parametrize("unknown", ["VOID", "", None, 42])
    def test_unknown_state_has_no_transitions(self, unknown):
        assert valid_transitions_from(unknown) == frozenset()
        assert can_transition(unknown, S.CANCELLED) is False
        assert can_transition(S.DRAFT, unknown) is False


class TestColorClass:
    def test_known_states(self):
        assert color_class_for(S.DRAFT) == "gray"
        assert color_class_for(S.PENDING_APPROVAL) == "yellow"
        assert color_class_for(S.PAID) == "green"
        assert color_class_for(S.PARTIAL) == "orange"
        assert color_class_for("CANCELLED") == "red"

    def test_unknown_defaults_to_gray(self):
        assert color_class_for("VOID") == "gray"


class TestPaymentTarget:
    def test_full_amount_is_paid(self, sample_receipt):
        assert payment_target(sample_receipt(), Decimal("1500")) == S.PAID

    def test_overpayment_is_paid(self, sample_receipt):
        assert payment_target(sample_receipt(), Decimal("2000")) == S.PAID

    def test_short_amount_is_partial(self, sample_receipt):
        assert payment_target(sample_receipt(), Decimal("400")) == S.PARTIAL

    def test_counts_previous_payments(self, sample_receipt):
        receipt = sample_receipt(receipt_state="PARTIAL", paid_amount=Decimal("1000"))
        assert payment_target(receipt, Decimal("500")) == S.PAID


class TestAvailableActions:
    def _kinds(self, state, gate):
        return [a.kind for a in available_actions(state, gate)]

    def test_draft(self):
        assert self._kinds(S.DRAFT, _gate("update")) == [ActionKind.SUBMIT, ActionKind.CANCEL]

    def test_unpaid(self):
        assert self._kinds(S.UNPAID, _gate("update")) == [
            ActionKind.SEND_FOR_APPROVAL,
            ActionKind.MARK_PAID,
            ActionKind.CANCEL,
        ]

    def test_pending_approval_with_approve_permission(self):
        assert self._kinds(S.PENDING_APPROVAL, _gate("update", "approve")) == [
            ActionKind.APPROVE,
            ActionKind.REJECT,
            ActionKind.CANCEL,
        ]

    def test_pending_approval_without_approve_permission(self):
        assert self._kinds(S.PENDING_APPROVAL, _gate("update")) == [ActionKind.REJECT, ActionKind.CANCEL]

    def test_approved_and_partial(self):
        assert self._kinds(S.APPROVED, _gate("update")) == [ActionKind.MARK_PAID, ActionKind.CANCEL]
        assert self._kinds(S.PARTIAL, _gate("update")) == [ActionKind.COMPLETE_PAYMENT, ActionKind.CANCEL]

    def test_paid_and_cancelled_offer_nothing(self):
        assert self._kinds(S.PAID, _gate("update", "approve")) == []
        assert self._kinds(S.CANCELLED, _gate("update", "approve")) == []

    def test_no_update_permission_offers_nothing(self):
        assert self._kinds(S.UNPAID, _gate("read", "approve")) == []

    def test_unknown_state_offers_nothing(self):
        assert self._kinds("VOID", _gate("update")) == []

    def test_every_action_target_is_a_legal_edge(self):
        gate = _gate("update", "approve")
        for state in S:
            for action in available_actions(state, gate):
                assert all(can_transition(state, t) for t in action.targets), (state, action.kind)
