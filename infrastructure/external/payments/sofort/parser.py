"""
Inbound SOFORT documents: XML to nested mapping, initiation responses
and status query responses.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional
import xml.etree.ElementTree as ET

from application.dtos.payments import (
    ErrorResult,
    InitiationResult,
    RedirectResult,
    TransactionDetails,
)
from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import GatewayProtocolError


logger = get_logger(__name__)

UNAUTHORIZED_MESSAGE = "unauthorized"


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    if not children:
        text = (element.text or "").strip()
        return text or None
    value: dict[str, Any] = dict(element.attrib)
    for child in children:
        item = _element_to_value(child)
        if child.tag in value:
            existing = value[child.tag]
            if isinstance(existing, list):
                existing.append(item)
            else:
                value[child.tag] = [existing, item]
        else:
            value[child.tag] = item
    return value


def parse_xml(raw: bytes | str | None) -> Optional[dict[str, Any]]:
    """Parse a gateway document into ``{root_tag: nested mapping}``.

    Blank input yields None; malformed XML raises GatewayProtocolError.
    """
    if raw is None or not raw.strip():
        return None
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as exc:
        raise GatewayProtocolError(f"Malformed XML: {exc}") from exc
    return {root.tag: _element_to_value(root)}


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _format_errors(errors: Any) -> str:
    collection = errors.get("error", errors) if isinstance(errors, Mapping) else errors
    pairs = []
    for err in _as_list(collection):
        if not isinstance(err, Mapping):
            pairs.append(str(err))
            continue
        pairs.append(f"{err.get('field') or ''}: {err.get('message') or ''}")
    return ", ".join(pairs)


def _redirect_from(body: Mapping[str, Any]) -> RedirectResult:
    new_transaction = body.get("new_transaction")
    if not isinstance(new_transaction, Mapping):
        raise GatewayProtocolError("Response has neither errors nor new_transaction", details={"keys": sorted(body)})
    url = new_transaction.get("payment_url")
    transaction = new_transaction.get("transaction")
    if not url or not transaction:
        raise GatewayProtocolError("new_transaction lacks payment_url or transaction")
    return RedirectResult(url=str(url), external_transaction_id=str(transaction))


def parse_initiation_response(
    body: Optional[Mapping[str, Any]],
    *,
    cancel_url: Optional[str] = None,
    unauthorized_message: str = UNAUTHORIZED_MESSAGE,
) -> InitiationResult:
    """Normalize an initiation response.

    Protocol problems are returned as ErrorResult; the caller still has to
    send the shopper back to the cancel location.
    """
    if not body:
        return ErrorResult(message=unauthorized_message, redirect_url=cancel_url)
    if body.get("errors"):
        return ErrorResult(message=_format_errors(body["errors"]), redirect_url=cancel_url)
    try:
        return _redirect_from(body)
    except GatewayProtocolError as exc:
        logger.warning("sofort_initiation_response_invalid", error=exc.message, details=exc.details)
        return ErrorResult(message=exc.message, redirect_url=cancel_url)


def parse_transaction_details(body: Optional[Mapping[str, Any]]) -> Optional[TransactionDetails]:
    if not body:
        return None
    transactions = body.get("transactions")
    if not isinstance(transactions, Mapping):
        return None
    details = _as_list(transactions.get("transaction_details"))
    if not details or not isinstance(details[0], Mapping):
        return None
    td = details[0]
    return TransactionDetails(
        time=str(td.get("time") or ""),
        status=str(td.get("status") or ""),
        status_reason=str(td.get("status_reason") or ""),
        amount=str(td.get("amount") or ""),
    )

