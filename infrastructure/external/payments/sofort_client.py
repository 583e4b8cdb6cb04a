"""
SOFORT (multipay XML API) adapter.

Flows used:
- initiation request -> redirect URL + gateway transaction id
- transaction request -> authoritative transaction details for reconciliation

Docs: https://www.sofort.com/integrationCenter-ger-DE/content/view/full/2513
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from application.dtos.payments import (
    GatewayConfig,
    InitiationResult,
    StatusQueryRequest,
    TransactionDetails,
)
from application.ports.payment_gateway import GatewayTransport
from core.settings import PaymentSettings, payment_settings
from domain.payment.entity import SOFORT_PROVIDER, Order, Payment
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.sofort import (
    build_base_url,
    build_correlation_token,
    build_headers,
    build_initiation_request,
    build_status_query_request,
    initiation_request_for,
    parse_initiation_response,
    parse_transaction_details,
    parse_xml,
    resolve_config,
)
from infrastructure.external.payments.sofort.parser import UNAUTHORIZED_MESSAGE


class SofortClient(BasePaymentClient):
    provider = SOFORT_PROVIDER

    def __init__(
        self,
        *,
        transport: Optional[GatewayTransport] = None,
        settings: Optional[PaymentSettings] = None,
        unauthorized_message: str = UNAUTHORIZED_MESSAGE,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or payment_settings
        super().__init__(
            timeouts=self._settings.timeouts.model_dump(),
            retry={"max": self._settings.retry.max, "base": self._settings.retry.base_backoff},
            http_transport=http_transport,
        )
        self._transport: GatewayTransport = transport or self
        self._unauthorized_message = unauthorized_message

    @property
    def cancel_url(self) -> str:
        return self._settings.sofort.cancel_url

    def _server_url(self, payment: Payment) -> str:
        method = payment.payment_method
        return (method.server_url if method and method.server_url else None) or self._settings.sofort.server_url

    def _decode(self, response: httpx.Response) -> Optional[dict[str, Any]]:
        return parse_xml(response.content)

    def resolve_config(self, config_key: Optional[str]) -> GatewayConfig:
        return resolve_config(config_key)

    def build_correlation_token(self, order_number: str, payment_id: Any, config_key: str) -> str:
        return build_correlation_token(order_number, payment_id, config_key)

    async def create_payment(
        self,
        config: GatewayConfig,
        order: Order,
        payment: Payment,
        reason: str,
    ) -> InitiationResult:
        base_url = build_base_url(order.store_url, self._settings.sofort.url_scheme)
        request = initiation_request_for(
            order,
            payment,
            reason=reason,
            base_url=base_url,
            currency=self._settings.sofort.currency,
            project_id=config.project_id,
        )
        url = self._server_url(payment)
        self._log("sofort_initiation_request", order_number=order.number, payment_id=payment.id, url=url)
        body = await self._transport.post(
            url,
            build_headers(config),
            build_initiation_request(request),
            idempotent=False,
        )
        result = parse_initiation_response(
            body,
            cancel_url=self.cancel_url,
            unauthorized_message=self._unauthorized_message,
        )
        self._log(
            "sofort_initiation_response",
            order_number=order.number,
            kind=result.kind,
            external_transaction_id=result.external_transaction_id,
        )
        return result

    async def query_transaction(
        self,
        config: GatewayConfig,
        payment: Payment,
    ) -> Optional[TransactionDetails]:
        url = self._server_url(payment)
        body = await self._transport.post(
            url,
            build_headers(config),
            build_status_query_request(StatusQueryRequest(external_transaction_id=payment.external_transaction_id)),
        )
        details = parse_transaction_details(body)
        self._log(
            "sofort_transaction_queried",
            external_transaction_id=payment.external_transaction_id,
            status=details.status if details else None,
        )
        return details
