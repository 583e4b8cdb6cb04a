"""
Payment specific codes and gateway status mapping.
"""
from __future__ import annotations

from enum import Enum, IntEnum


class PaymentCode(IntEnum):
    # Local configuration / validation (6xxxx)
    CONFIG_ERROR = 60000
    VALIDATION_ERROR = 60001
    NOT_FOUND = 60002

    # Gateway protocol errors (61xxx)
    PROTOCOL_ERROR = 61000


class TransactionStatus(str, Enum):
    """Transaction status vocabulary reported by the SOFORT status query."""

    LOSS = "loss"
    PENDING = "pending"
    REFUNDED = "refunded"
    RECEIVED = "received"
    UNKNOWN = "unknown"

    @classmethod
    def from_gateway(cls, value: str | None) -> "TransactionStatus":
        try:
            return cls(value or "")
        except ValueError:
            return cls.UNKNOWN


class LifecycleTransition(str, Enum):
    VOID = "void"
    COMPLETE = "complete"


# Gateway status -> local lifecycle transition. `pending` and `received` both
# count as accepted funds for the merchant; unknown statuses fall back to complete.
SOFORT_STATUS_TO_TRANSITION: dict[TransactionStatus, LifecycleTransition] = {
    TransactionStatus.LOSS: LifecycleTransition.VOID,
    TransactionStatus.PENDING: LifecycleTransition.COMPLETE,
    TransactionStatus.REFUNDED: LifecycleTransition.VOID,
    TransactionStatus.RECEIVED: LifecycleTransition.COMPLETE,
    TransactionStatus.UNKNOWN: LifecycleTransition.COMPLETE,
}
