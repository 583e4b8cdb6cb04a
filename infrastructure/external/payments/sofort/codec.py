"""
Outbound XML bodies and headers for the SOFORT API.

Element names, root names and version attributes are fixed by the gateway.
"""
from __future__ import annotations

import base64
from decimal import Decimal
from typing import Optional
from urllib.parse import urlsplit
import xml.etree.ElementTree as ET

from application.dtos.payments import GatewayConfig, InitiationRequest, StatusQueryRequest
from domain.common.exceptions import PaymentValidationError
from domain.payment.entity import Order, Payment


XML_CONTENT_TYPE = "application/xml; charset=UTF-8"

SUCCESS_PATH = "/sofort/success"
CANCEL_PATH = "/sofort/cancel"
NOTIFICATION_PATH = "/sofort/status"


def build_headers(config: GatewayConfig) -> dict[str, str]:
    token = base64.b64encode(config.http_auth_key.encode("utf-8")).decode("ascii")
    return {
        "Authorization": f"Basic {token}",
        "Content-Type": XML_CONTENT_TYPE,
        "Accept": XML_CONTENT_TYPE,
    }


def build_base_url(store_url: str, scheme: str = "http") -> str:
    """Callback base URL for a store.

    Only the first configured store URL is used. The gateway rejects
    notification URLs with a port, so any port is dropped here.
    """
    first = next((line.strip() for line in (store_url or "").splitlines() if line.strip()), "")
    if not first:
        raise PaymentValidationError("Store has no URL", field="store_url")
    parts = urlsplit(first if "//" in first else f"//{first}")
    host = parts.hostname or ""
    path = parts.path.rstrip("/")
    return f"{scheme}://{host}{path}"


def _format_amount(amount: Decimal) -> str:
    return f"{Decimal(amount):.2f}"


def initiation_request_for(
    order: Order,
    payment: Payment,
    *,
    reason: str,
    base_url: str,
    currency: str,
    project_id: str,
) -> InitiationRequest:
    return InitiationRequest(
        amount=order.total,
        currency_code=currency,
        reason=reason,
        success_url=f"{base_url}{SUCCESS_PATH}?sofort_hash={payment.correlation_token}",
        abort_url=f"{base_url}{CANCEL_PATH}",
        notification_url=f"{base_url}{NOTIFICATION_PATH}",
        project_id=project_id,
    )


def _text(parent: ET.Element, tag: str, value: Optional[str]) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = "" if value is None else str(value)
    return child


def _serialize(root: ET.Element) -> bytes:
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def build_initiation_request(req: InitiationRequest) -> bytes:
    root = ET.Element("multipay", {"version": "1.0"})
    ET.SubElement(root, "su")
    _text(root, "amount", _format_amount(req.amount))
    _text(root, "currency_code", req.currency_code)
    reasons = ET.SubElement(root, "reasons")
    _text(reasons, "reason", req.reason)
    _text(root, "success_url", req.success_url)
    _text(root, "success_link_redirect", "1")
    _text(root, "abort_url", req.abort_url)
    notification_urls = ET.SubElement(root, "notification_urls")
    _text(notification_urls, "notification_url", req.notification_url)
    _text(root, "project_id", req.project_id)
    return _serialize(root)


def build_status_query_request(req: StatusQueryRequest) -> bytes:
    root = ET.Element("transaction_request", {"version": "2"})
    _text(root, "transaction", req.external_transaction_id)
    return _serialize(root)
