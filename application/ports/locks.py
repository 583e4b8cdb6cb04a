"""
Keyed lock port.

Reconciliation of a payment is a read-modify-write of its state and audit
log; callers hold the lock for the payment's key for the whole sequence.
"""
from __future__ import annotations

from typing import AsyncContextManager, Protocol


class KeyedLock(Protocol):
    def hold(self, key: str) -> AsyncContextManager[None]: ...

    # Optional but recommended; concrete implementations may provide it.
    async def aclose(self) -> None: ...  # pragma: no cover - optional


__all__ = ["KeyedLock"]
