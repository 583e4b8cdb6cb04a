"""
SOFORT payment routes.

Exposes initiation for the checkout plus the three callback URLs that are
sent to the gateway (success, cancel, status notification). Keep this thin:
no protocol details here.
"""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, Cookie, Depends, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from application.services.payment_service import SofortPaymentService
from api.dependencies import get_order_repository, get_payment_service
from core.response import success_response
from core.i18n import t
from core.logging_config import get_logger
from core.settings import payment_settings
from domain.common.exceptions import PaymentValidationError
from infrastructure.external.payments.exceptions import GatewayProtocolError
from infrastructure.external.payments.sofort import parse_xml
from infrastructure.repositories.payment_repository import InMemoryOrderRepository


router = APIRouter(tags=["SOFORT"])
logger = get_logger(__name__)


class InitiatePayload(BaseModel):
    reference_number: Optional[str] = None


def _form_to_mapping(body: bytes) -> dict[str, Any]:
    """Decode `a[b]=c` style form fields into nested mappings."""
    result: dict[str, Any] = {}
    for key, value in parse_qsl(body.decode("utf-8"), keep_blank_values=True):
        parts = [p.rstrip("]") for p in key.split("[")]
        node = result
        for part in parts[:-1]:
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                break
            node = child
        else:
            node[parts[-1]] = value
    return result


async def _decode_notification(request: Request) -> Optional[dict[str, Any]]:
    body = await request.body()
    ct = (request.headers.get("content-type") or "").lower()
    if "application/x-www-form-urlencoded" in ct:
        try:
            return _form_to_mapping(body)
        except UnicodeDecodeError as exc:
            logger.info("sofort_notification_unparsable", error=str(exc))
            return None
    try:
        return parse_xml(body)
    except GatewayProtocolError as exc:
        logger.info("sofort_notification_unparsable", error=exc.message)
        return None


async def _get_order(order_number: str, orders: InMemoryOrderRepository):
    order = await orders.get_by_number(order_number)
    if order is None:
        raise PaymentValidationError("No order given", field="order_number", details={"order_number": order_number})
    return order


@router.post("/payments/sofort/orders/{order_number}/initiate", summary="Start SOFORT payment")
async def initiate_payment(
    order_number: str,
    payload: InitiatePayload | None = None,
    service: SofortPaymentService = Depends(get_payment_service),
    orders: InMemoryOrderRepository = Depends(get_order_repository),
):
    order = await _get_order(order_number, orders)
    result = await service.initiate(order, payload.reference_number if payload else None)
    message = t("Payment error") if result.is_error else t("Redirect to payment page")
    return success_response(data=result.model_dump(mode="json"), message=message)


@router.post("/sofort/status", summary="SOFORT status notification")
async def status_notification(
    request: Request,
    service: SofortPaymentService = Depends(get_payment_service),
):
    payload = await _decode_notification(request)
    await service.reconcile(payload)
    # Acknowledge with 200 so the gateway stops retrying
    return success_response(message=t("Notification received"))


@router.get("/sofort/success", summary="Shopper returned after payment")
async def payment_success(
    sofort_hash: str = Query(...),
    order_number: Optional[str] = Query(default=None),
    order_cookie: Optional[str] = Cookie(default=None, alias="order_number"),
    service: SofortPaymentService = Depends(get_payment_service),
    orders: InMemoryOrderRepository = Depends(get_order_repository),
):
    number = order_number or order_cookie
    if not number:
        raise PaymentValidationError("No order given", field="order_number")
    order = await _get_order(number, orders)
    payment = await service.verify_success(order, sofort_hash)
    return success_response(
        data={"order_number": order.number, "payment_id": payment.id, "state": payment.state.value},
        message=t("Payment confirmed"),
    )


@router.get("/sofort/cancel", summary="Shopper aborted payment")
async def payment_cancel():
    logger.info("sofort_payment_aborted")
    return RedirectResponse(url=payment_settings.sofort.cancel_url, status_code=303)
