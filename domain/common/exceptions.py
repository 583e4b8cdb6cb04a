"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        message_key: Optional[str] = None,
        format_params: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        self.message_key = message_key
        self.format_params = format_params
        super().__init__(self.message)


class GatewayConfigError(BusinessException):
    """Gateway config key is missing or malformed."""

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.CONFIG_ERROR,
            message=message,
            error_type="GatewayConfigError",
            details=details,
            field="config_key",
            message_key="payments.config.invalid",
        )


class PaymentValidationError(BusinessException):
    """Order/payment/payment method is missing or not handled by this gateway."""

    def __init__(self, message: str, *, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.VALIDATION_ERROR,
            message=message,
            error_type="PaymentValidationError",
            details=details,
            field=field,
            message_key="payments.validation.failed",
        )


class PaymentNotFoundError(BusinessException):
    def __init__(self, external_transaction_id: str):
        super().__init__(
            code=PaymentCode.NOT_FOUND,
            message=f"No payment for transaction {external_transaction_id}",
            error_type="PaymentNotFound",
            details={"external_transaction_id": external_transaction_id},
            message_key="payments.not_found",
        )
