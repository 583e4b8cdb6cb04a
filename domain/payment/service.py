"""
支付领域服务 - 将网关交易状态映射为本地生命周期转换
"""
from typing import Optional

from application.dtos.payments import TransactionDetails
from shared.codes.payment_codes import (
    LifecycleTransition,
    SOFORT_STATUS_TO_TRANSITION,
)
from .entity import Payment


DEFAULT_STATUS_ENTRY = "No transaction status received"


def transition_for(details: TransactionDetails) -> Optional[LifecycleTransition]:
    """Lifecycle transition for a status report; None when the gateway sent no status."""
    if not details.status:
        return None
    return SOFORT_STATUS_TO_TRANSITION[details.transaction_status]


class PaymentDomainService:
    """
    支付领域服务

    职责：
    1. 按映射表触发 void/complete
    2. 每次对账向 audit_log 追加且仅追加一行
    """

    def apply_transaction_details(
        self,
        payment: Payment,
        details: Optional[TransactionDetails],
        *,
        default_entry: str = DEFAULT_STATUS_ENTRY,
    ) -> Optional[LifecycleTransition]:
        if details is None:
            payment.append_audit(f"{default_entry}\n")
            return None

        transition = transition_for(details)
        if transition is LifecycleTransition.VOID:
            payment.void()
        elif transition is LifecycleTransition.COMPLETE:
            payment.complete()
        payment.append_audit(details.audit_line())
        return transition
