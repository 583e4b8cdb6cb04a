"""Redis based KeyedLock for deployments with several worker processes."""
from __future__ import annotations

import asyncio
import socket
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis import asyncio as aioredis
from redis.exceptions import LockError, RedisError

from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)

_redis_client: Optional[aioredis.Redis] = None
_init_lock = asyncio.Lock()


async def init_redis() -> aioredis.Redis:
    """初始化共享 Redis 连接（单例）"""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    async with _init_lock:
        if _redis_client is not None:
            return _redis_client
        if not settings.redis.url:
            raise RuntimeError("REDIS__URL 未配置，无法初始化Redis客户端")

        keepalive_opts = {}
        if hasattr(socket, "TCP_KEEPIDLE") and hasattr(socket, "TCP_KEEPINTVL") and hasattr(socket, "TCP_KEEPCNT"):
            keepalive_opts = {
                socket.TCP_KEEPIDLE: 1,
                socket.TCP_KEEPINTVL: 1,
                socket.TCP_KEEPCNT: 3,
            }
        client = aioredis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.max_connections,
            socket_keepalive=True,
            socket_keepalive_options=keepalive_opts,
        )
        await client.ping()
        _redis_client = client
        logger.info("redis_initialized", namespace=settings.redis.namespace)
        return _redis_client


async def shutdown_redis() -> None:
    """关闭Redis连接"""
    global _redis_client

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("redis_closed")
        except RedisError as exc:
            logger.error("redis_close_failed", error=str(exc))
        finally:
            _redis_client = None


class RedisKeyedLock:
    def __init__(
        self,
        client: Optional[aioredis.Redis] = None,
        *,
        namespace: Optional[str] = None,
        timeout: int = 30,
        blocking_timeout: int = 10,
    ) -> None:
        self._client = client
        self._shared = client is None
        self._namespace = (namespace if namespace is not None else settings.redis.namespace).strip(":")
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    def _lock_key(self, key: str) -> str:
        if not self._namespace:
            return f"lock:{key}"
        return f"lock:{self._namespace}:{key}"

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        if self._client is None:
            self._client = await init_redis()
        lock_key = self._lock_key(key)
        lock = self._client.lock(
            lock_key,
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            raise TimeoutError(f"获取锁失败: {lock_key}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as exc:
                # Lock expired while held; the next holder already owns it
                logger.error("lock_release_failed", lock_key=lock_key, error=str(exc))

    async def aclose(self) -> None:
        if self._shared:
            await shutdown_redis()
