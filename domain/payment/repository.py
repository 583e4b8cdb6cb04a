"""
支付仓储接口 - 定义支付数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from .entity import Order, Payment


class PaymentRepository(ABC):
    """支付仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        """根据ID获取支付"""
        pass

    @abstractmethod
    async def get_by_external_transaction_id(self, external_transaction_id: str) -> Optional[Payment]:
        """根据网关交易号获取支付"""
        pass

    @abstractmethod
    async def update_fields(self, payment: Payment, **fields: Any) -> Payment:
        """按字段更新支付记录（不触发状态机）"""
        pass

    @abstractmethod
    async def save(self, payment: Payment) -> Payment:
        """持久化整条支付记录（状态转换之后调用）"""
        pass


class OrderRepository(ABC):
    """订单仓储抽象接口"""

    @abstractmethod
    async def get_by_number(self, number: str) -> Optional[Order]:
        """根据订单号获取订单"""
        pass
