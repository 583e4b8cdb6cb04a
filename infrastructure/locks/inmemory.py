"""In-memory implementation of KeyedLock.

Single-process only. Useful for local dev and tests.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class InMemoryKeyedLock:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                # Drop idle keys so the map does not grow with every transaction id
                del self._waiters[key]
                del self._locks[key]

    def active_keys(self) -> int:
        return len(self._locks)

    async def aclose(self) -> None:
        self._locks.clear()
        self._waiters.clear()
