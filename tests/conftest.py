"""Shared fixtures: a fake timer scheduler plus sample users and receipts."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

import pytest

from ddms.models.auth import AuthUser, Permission, Store, UserRole
from ddms.models.receipt import Receipt, ReceiptItem
from ddms.session.context import AuthSession
from ddms.session.scheduler import Scheduler, TimerHandle


class FakeTimer(TimerHandle):
    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Virtual clock; timers only fire inside ``advance``."""

    def __init__(self) -> None:
        self.current = 0.0
        self.timers: list[FakeTimer] = []
        self._seq = 0

    def now(self) -> float:
        return self.current

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        self._seq += 1
        timer = FakeTimer(self.current + delay_ms, self._seq, callback)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, ms: float) -> None:
        target = self.current + ms
        while True:
            due = [t for t in self.pending() if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.timers.remove(timer)
            self.current = timer.due
            timer.callback()
        self.current = target


def _perm(resource: str, action: str) -> Permission:
    return Permission(resource=resource, action=action)


def _sample_user(**overrides) -> AuthUser:
    defaults = dict(
        id="u-1",
        name="Ravi Kumar",
        mobile="9876543210",
        roles=[
            UserRole(
                role_name="CASHIER",
                store_id="s-1",
                permissions=[_perm("receipts", "read"), _perm("receipts", "update"), _perm("receipts", "create")],
            )
        ],
        stores=[Store(id="s-1", name="Sri Venkateswara Temple"), Store(id="s-2", name="Annadanam Trust")],
    )
    defaults.update(overrides)
    return AuthUser(**defaults)


def _sample_receipt(**overrides) -> Receipt:
    defaults = dict(
        id="r-1",
        receipt_number="RCPT-0001",
        date="2025-03-14",
        customer_id="c-1",
        customer_name="Lakshmi Devi",
        items=[
            ReceiptItem(particular_id="p-1", particular_name="Annadanam", amount=Decimal("1000")),
            ReceiptItem(particular_id="p-2", particular_name="Gaushala", amount=Decimal("500")),
        ],
        total_amount=Decimal("1500"),
        paid_amount=Decimal("0"),
        receipt_state="UNPAID",
    )
    defaults.update(overrides)
    return Receipt(**defaults)


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def sample_user():
    return _sample_user


@pytest.fixture()
def sample_receipt():
    return _sample_receipt


@pytest.fixture()
def auth_session(sample_user) -> AuthSession:
    session = AuthSession()
    session.set_auth(sample_user(), "access-1", "refresh-1")
    return session
