"""
Payment gateway ports (application/ports) exposing replaceable protocols.

Application depends on these Protocols; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    GatewayConfig,
    InitiationResult,
    TransactionDetails,
)
from domain.payment.entity import Order, Payment


@runtime_checkable
class GatewayTransport(Protocol):
    """Executes one blocking request/response exchange with the gateway.

    Returns the parsed response body as a nested mapping, or None when the
    gateway could not be reached, rejected the credentials or answered with
    something unparsable. Non-idempotent requests are only retried when
    the connection was never established.
    """

    async def post(
        self,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        *,
        idempotent: bool = True,
    ) -> Optional[dict[str, Any]]: ...


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for redirect-based providers.

    Implementations should be async and side-effect free beyond IO.
    """

    provider: str

    def resolve_config(self, config_key: Optional[str]) -> GatewayConfig: ...

    def build_correlation_token(self, order_number: str, payment_id: Any, config_key: str) -> str: ...

    async def create_payment(
        self,
        config: GatewayConfig,
        order: Order,
        payment: Payment,
        reason: str,
    ) -> InitiationResult: ...

    async def query_transaction(
        self,
        config: GatewayConfig,
        payment: Payment,
    ) -> Optional[TransactionDetails]: ...
