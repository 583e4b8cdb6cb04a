"""
API依赖项 - 支付服务装配（composition root）

仓储默认使用进程内实现；宿主系统在此替换为自己的订单/支付存储。
"""
from functools import lru_cache
from typing import AsyncIterator

from application.ports.locks import KeyedLock
from application.services.payment_service import SofortPaymentService
from core.i18n import t
from core.settings import payment_settings
from infrastructure.external.payments import get_payment_gateway
from infrastructure.locks import InMemoryKeyedLock, RedisKeyedLock
from infrastructure.repositories.payment_repository import (
    InMemoryOrderRepository,
    InMemoryPaymentRepository,
)


@lru_cache
def get_payment_repository() -> InMemoryPaymentRepository:
    return InMemoryPaymentRepository()


@lru_cache
def get_order_repository() -> InMemoryOrderRepository:
    return InMemoryOrderRepository(get_payment_repository())


@lru_cache
def get_keyed_lock() -> KeyedLock:
    """对账锁：单进程用内存锁，多进程部署用 Redis 锁"""
    cfg = payment_settings.lock
    if cfg.backend == "redis":
        return RedisKeyedLock(timeout=cfg.timeout, blocking_timeout=cfg.blocking_timeout)
    return InMemoryKeyedLock()


async def get_payment_service() -> AsyncIterator[SofortPaymentService]:
    """每个请求一个网关客户端，请求结束后关闭 HTTP 连接"""
    service = SofortPaymentService(
        gateway=get_payment_gateway(unauthorized_message=t("unauthorized")),
        payments=get_payment_repository(),
        locks=get_keyed_lock(),
    )
    try:
        yield service
    finally:
        await service.aclose()
