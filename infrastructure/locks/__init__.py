"""Keyed locks serializing reconciliation per payment (in-memory, Redis)."""
from .inmemory import InMemoryKeyedLock
from .redis import RedisKeyedLock, init_redis, shutdown_redis

__all__ = [
    "InMemoryKeyedLock",
    "RedisKeyedLock",
    "init_redis",
    "shutdown_redis",
]
