"""
支付领域实体 - 订单、支付方式与支付记录
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


SOFORT_PROVIDER = "sofort"


class PaymentState(str, Enum):
    """支付生命周期状态"""
    CHECKOUT = "checkout"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"
    VOID = "void"


@dataclass
class PaymentMethod:
    """支付方式配置（由商户后台维护）"""

    id: Optional[int]
    name: str
    provider: str
    config_key: Optional[str] = None  # "<user_id>:<project_id>:<api_key>"
    server_url: Optional[str] = None


@dataclass
class Payment:
    """
    支付记录

    网关相关字段：
    - external_transaction_id: 网关分配的交易号，通知回调按此查找
    - correlation_token: 成功回跳 URL 中携带的校验哈希
    - audit_log: 只追加的状态日志，每次对账追加一行
    """

    id: Optional[int]
    amount: Decimal
    payment_method: Optional[PaymentMethod] = None
    order: Optional["Order"] = None
    state: PaymentState = PaymentState.CHECKOUT
    external_transaction_id: str = ""
    correlation_token: str = ""
    audit_log: str = ""
    updated_at: Optional[datetime] = None

    def _transition(self, target: PaymentState, allowed: tuple[PaymentState, ...]) -> bool:
        if self.state not in allowed:
            return False
        self.state = target
        self.updated_at = datetime.now(timezone.utc)
        return True

    def complete(self) -> bool:
        """标记完成；非法转换时返回 False 而不抛异常"""
        return self._transition(
            PaymentState.COMPLETE,
            (PaymentState.CHECKOUT, PaymentState.PENDING, PaymentState.PROCESSING),
        )

    def void(self) -> bool:
        """作废；已作废或失败的支付保持原状态"""
        return self._transition(
            PaymentState.VOID,
            (PaymentState.CHECKOUT, PaymentState.PENDING, PaymentState.PROCESSING, PaymentState.COMPLETE),
        )

    def append_audit(self, line: str) -> str:
        self.audit_log = (self.audit_log or "") + line
        return self.audit_log


@dataclass
class Order:
    """订单快照：网关只读取编号、金额、商店地址与支付列表"""

    number: str
    total: Decimal
    store_url: str
    id: Optional[int] = None
    reference_number: Optional[str] = None
    payments: list[Payment] = field(default_factory=list)

    @property
    def last_payment(self) -> Optional[Payment]:
        return self.payments[-1] if self.payments else None

    def add_payment(self, payment: Payment) -> Payment:
        payment.order = self
        self.payments.append(payment)
        return payment
