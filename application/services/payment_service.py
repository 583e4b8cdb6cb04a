"""
Application service orchestrating the SOFORT payment use-cases.

This class depends only on application ports, DTOs and the payment domain.
Gateway, repository and lock implementations are provided by infrastructure
and injected from the composition root (API), keeping dependencies one-way.
The service holds no per-operation state, so one instance may serve
concurrent requests.
"""
from __future__ import annotations

import hmac
from typing import Any, Mapping, Optional

from application.dtos.payments import InitiationResult, StatusNotification
from application.ports.locks import KeyedLock
from application.ports.payment_gateway import PaymentGateway
from core.i18n import t
from core.logging_config import get_logger
from domain.common.exceptions import PaymentNotFoundError, PaymentValidationError
from domain.payment.entity import Order, Payment
from domain.payment.repository import PaymentRepository
from domain.payment.service import DEFAULT_STATUS_ENTRY, PaymentDomainService


logger = get_logger(__name__)


class SofortPaymentService:
    def __init__(
        self,
        gateway: PaymentGateway,
        payments: PaymentRepository,
        locks: KeyedLock,
        domain_service: Optional[PaymentDomainService] = None,
    ) -> None:
        self.gateway = gateway
        self.payments = payments
        self.locks = locks
        self.domain_service = domain_service or PaymentDomainService()

    # Validation

    def _check_method(self, payment: Payment) -> str:
        method = payment.payment_method
        if method is None:
            raise PaymentValidationError("Payment has no payment method", field="payment_method")
        if (method.provider or "").lower() != self.gateway.provider:
            raise PaymentValidationError(
                "Payment method is not handled by this gateway",
                field="payment_method",
                details={"provider": method.provider},
            )
        return method.config_key or ""

    def _payment_for_order(self, order: Optional[Order]) -> tuple[Payment, str]:
        if order is None:
            raise PaymentValidationError("No order given", field="order")
        payment = order.last_payment
        if payment is None:
            raise PaymentValidationError("Order has no payment", field="payment", details={"order_number": order.number})
        return payment, self._check_method(payment)

    def _order_for_payment(self, payment: Payment) -> tuple[Order, str]:
        config_key = self._check_method(payment)
        if payment.order is None:
            raise PaymentValidationError("Order not found for payment", field="order", details={"payment_id": payment.id})
        return payment.order, config_key

    # Use-cases

    async def initiate(self, order: Optional[Order], reference_number: Optional[str] = None) -> InitiationResult:
        """Start a payment session; the caller redirects to the returned URL."""
        payment, config_key = self._payment_for_order(order)
        config = self.gateway.resolve_config(config_key)
        if not (order.store_url or "").strip():
            raise PaymentValidationError("Store has no URL", field="store_url", details={"order_number": order.number})

        token = self.gateway.build_correlation_token(order.number, payment.id, config_key)
        await self.payments.update_fields(payment, correlation_token=token)

        reason = reference_number or order.reference_number or order.number
        logger.info(
            "payment_initiate_request",
            order_number=order.number,
            payment_id=payment.id,
            provider=self.gateway.provider,
        )
        result = await self.gateway.create_payment(config, order, payment, reason)
        await self.payments.update_fields(payment, external_transaction_id=result.external_transaction_id)

        if result.is_error:
            logger.warning("payment_initiate_failed", order_number=order.number, message=result.message)
        else:
            logger.info(
                "payment_initiate_response",
                order_number=order.number,
                external_transaction_id=result.external_transaction_id,
            )
        return result

    async def reconcile(self, notification: StatusNotification | Mapping[str, Any] | None) -> None:
        """Re-query the gateway for a notified transaction and apply its status."""
        if not isinstance(notification, StatusNotification):
            notification = StatusNotification.from_payload(notification)
        if notification is None:
            logger.debug("payment_notification_ignored", provider=self.gateway.provider)
            return

        transaction = notification.transaction
        async with self.locks.hold(f"{self.gateway.provider}:{transaction}"):
            payment = await self.payments.get_by_external_transaction_id(transaction)
            if payment is None:
                logger.error("payment_notification_unknown_transaction", external_transaction_id=transaction)
                raise PaymentNotFoundError(transaction)

            _, config_key = self._order_for_payment(payment)
            config = self.gateway.resolve_config(config_key)

            details = await self.gateway.query_transaction(config, payment)
            transition = self.domain_service.apply_transaction_details(
                payment,
                details,
                default_entry=t(DEFAULT_STATUS_ENTRY),
            )
            await self.payments.save(payment)

        logger.info(
            "payment_reconciled",
            payment_id=payment.id,
            external_transaction_id=transaction,
            gateway_status=details.status if details else None,
            transition=transition.value if transition else None,
            state=payment.state.value,
        )

    async def verify_success(self, order: Optional[Order], token: Optional[str]) -> Payment:
        """Check the `sofort_hash` of a success redirect against the order's payment."""
        payment, config_key = self._payment_for_order(order)
        expected = self.gateway.build_correlation_token(order.number, payment.id, config_key)
        if not token or not hmac.compare_digest(expected.encode("ascii"), token.strip().lower().encode("utf-8")):
            logger.warning("payment_success_token_mismatch", order_number=order.number, payment_id=payment.id)
            raise PaymentValidationError("Correlation token does not match", field="sofort_hash")
        return payment

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
