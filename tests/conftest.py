"""Pytest bootstrap configuration.

Ensure environment defaults are set before modules that read settings are
imported, and provide order/payment builders shared by the payment tests.
"""
import os

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOCK__BACKEND", "memory")

import asyncio
from decimal import Decimal

import pytest

from domain.payment.entity import Order, Payment, PaymentMethod, PaymentState


CONFIG_KEY = "1000:2000:apikey"


@pytest.fixture
def sofort_method() -> PaymentMethod:
    return PaymentMethod(id=1, name="SOFORT", provider="sofort", config_key=CONFIG_KEY)


@pytest.fixture
def make_order(sofort_method):
    def _make(
        number: str = "R123",
        total: str = "49.90",
        payment_id: int = 7,
        method: PaymentMethod | None = sofort_method,
        state: PaymentState = PaymentState.CHECKOUT,
        store_url: str = "shop.example.com",
    ) -> Order:
        order = Order(number=number, total=Decimal(total), store_url=store_url, reference_number=f"Ref {number}")
        order.add_payment(Payment(id=payment_id, amount=Decimal(total), payment_method=method, state=state))
        return order

    return _make


class StubTransport:
    """Records gateway posts and answers with canned decoded bodies."""

    def __init__(self, initiation=None, details=None, delay: float = 0.0):
        self.initiation = initiation
        self.details = details
        self.delay = delay
        self.calls: list[tuple[str, dict, bytes]] = []
        self.idempotent: list[bool] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def post(self, url, headers, body, *, idempotent=True):
        self.calls.append((url, headers, body))
        self.idempotent.append(idempotent)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if body.lstrip().startswith(b"<?xml") and b"<multipay" in body:
                return self.initiation
            return self.details
        finally:
            self.in_flight -= 1


def new_transaction(txn: str = "123-456") -> dict:
    return {"new_transaction": {"transaction": txn, "payment_url": f"https://www.sofort.com/payment/go/{txn}"}}


def transaction_details(status: str = "received", time: str = "2024-03-01T10:00:00+01:00") -> dict:
    return {
        "transactions": {
            "transaction_details": {
                "transaction": "123-456",
                "time": time,
                "status": status,
                "status_reason": "credited",
                "amount": "49.90",
            }
        }
    }


@pytest.fixture
def transport() -> StubTransport:
    return StubTransport(initiation=new_transaction(), details=transaction_details())


@pytest.fixture
def make_transport():
    def _make(status: str = "received", txn: str = "123-456", initiation=..., details=..., delay: float = 0.0):
        return StubTransport(
            initiation=new_transaction(txn) if initiation is ... else initiation,
            details=transaction_details(status) if details is ... else details,
            delay=delay,
        )

    return _make
