from decimal import Decimal

import pytest

from domain.payment.entity import Payment
from infrastructure.external.payments import get_payment_gateway
from infrastructure.external.payments.sofort_client import SofortClient
from infrastructure.repositories.payment_repository import (
    InMemoryOrderRepository,
    InMemoryPaymentRepository,
)


@pytest.mark.parametrize("provider", [None, "sofort", "SOFORT", "sofortueberweisung", "klarna"])
def test_factory_returns_sofort_client(provider):
    gateway = get_payment_gateway(provider, unauthorized_message="nicht autorisiert")
    assert isinstance(gateway, SofortClient)
    assert gateway.provider == "sofort"


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        get_payment_gateway("stripe")


@pytest.mark.asyncio
async def test_repository_assigns_ids_and_finds_by_transaction():
    repo = InMemoryPaymentRepository()
    payment = await repo.add(Payment(id=None, amount=Decimal("10.00")))
    assert payment.id == 1
    assert await repo.get_by_id(1) is payment

    await repo.update_fields(payment, external_transaction_id="abc")
    assert await repo.get_by_external_transaction_id("abc") is payment
    assert await repo.get_by_external_transaction_id("") is None
    assert payment.updated_at is not None


@pytest.mark.asyncio
async def test_repository_only_updates_gateway_fields():
    repo = InMemoryPaymentRepository()
    payment = await repo.add(Payment(id=None, amount=Decimal("10.00")))
    with pytest.raises(ValueError):
        await repo.update_fields(payment, state="complete")


@pytest.mark.asyncio
async def test_order_repository_registers_payments(make_order):
    payments = InMemoryPaymentRepository()
    orders = InMemoryOrderRepository(payments)
    order = await orders.add(make_order(number="R9", payment_id=9))
    assert await orders.get_by_number("R9") is order
    assert await payments.get_by_id(9) is order.last_payment
