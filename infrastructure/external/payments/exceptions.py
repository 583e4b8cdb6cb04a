"""
Exceptions for payment providers mapped to unified BusinessException variants.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class GatewayProtocolError(BusinessException):
    """Gateway answered with a document shape the protocol does not define."""

    def __init__(self, message: str, *, provider: str = "sofort", details: Optional[dict] = None):
        full_details = {"provider": provider}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.PROTOCOL_ERROR,
            message=message,
            error_type="GatewayProtocolError",
            details=full_details,
        )
