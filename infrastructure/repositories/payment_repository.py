"""
支付仓储实现 - 进程内存储

订单与支付记录归宿主系统所有；这里的实现只用于本地开发和测试。
"""
from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any, Optional

from domain.payment.entity import Order, Payment
from domain.payment.repository import OrderRepository, PaymentRepository
from core.logging_config import get_logger


logger = get_logger(__name__)

# 网关相关、允许按字段更新的属性
UPDATABLE_FIELDS = frozenset({"external_transaction_id", "correlation_token", "audit_log"})


class InMemoryPaymentRepository(PaymentRepository):
    """支付仓储的内存实现"""

    def __init__(self) -> None:
        self._payments: dict[int, Payment] = {}
        self._ids = itertools.count(1)

    async def add(self, payment: Payment) -> Payment:
        if payment.id is None:
            payment.id = next(self._ids)
        self._payments[payment.id] = payment
        return payment

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        return self._payments.get(payment_id)

    async def get_by_external_transaction_id(self, external_transaction_id: str) -> Optional[Payment]:
        if not external_transaction_id:
            return None
        for payment in self._payments.values():
            if payment.external_transaction_id == external_transaction_id:
                return payment
        return None

    async def update_fields(self, payment: Payment, **fields: Any) -> Payment:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not updatable: {sorted(unknown)}")
        for name, value in fields.items():
            setattr(payment, name, value)
        payment.updated_at = datetime.now(timezone.utc)
        return await self.save(payment)

    async def save(self, payment: Payment) -> Payment:
        if payment.id is None:
            return await self.add(payment)
        self._payments[payment.id] = payment
        logger.debug("payment_saved", payment_id=payment.id, state=payment.state.value)
        return payment


class InMemoryOrderRepository(OrderRepository):
    """订单仓储的内存实现"""

    def __init__(self, payments: Optional[InMemoryPaymentRepository] = None) -> None:
        self._orders: dict[str, Order] = {}
        self._payments = payments

    async def add(self, order: Order) -> Order:
        self._orders[order.number] = order
        if self._payments is not None:
            for payment in order.payments:
                await self._payments.add(payment)
        return order

    async def get_by_number(self, number: str) -> Optional[Order]:
        return self._orders.get(number)
