"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Literal, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.codes.payment_codes import TransactionStatus


class GatewayConfig(BaseModel):
    """Merchant credentials resolved from a `user_id:project_id:api_key` string."""

    merchant_id: str
    project_id: str
    api_key: str

    model_config = ConfigDict(frozen=True)

    @property
    def http_auth_key(self) -> str:
        return f"{self.merchant_id}:{self.api_key}"

    def __repr__(self) -> str:
        return f"GatewayConfig(merchant_id={self.merchant_id!r}, project_id={self.project_id!r}, api_key='***')"


class InitiationRequest(BaseModel):
    amount: Decimal
    currency_code: str
    reason: str = ""
    success_url: str
    abort_url: str
    notification_url: str
    project_id: str

    @field_validator("currency_code")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u


class StatusQueryRequest(BaseModel):
    external_transaction_id: str


class RedirectResult(BaseModel):
    kind: Literal["redirect"] = "redirect"
    url: str
    external_transaction_id: str

    @property
    def is_error(self) -> bool:
        return False


class ErrorResult(BaseModel):
    kind: Literal["error"] = "error"
    message: str
    redirect_url: Optional[str] = None  # where the caller should send the shopper back to

    @property
    def is_error(self) -> bool:
        return True

    @property
    def external_transaction_id(self) -> str:
        return ""


InitiationResult = Annotated[Union[RedirectResult, ErrorResult], Field(discriminator="kind")]


class TransactionDetails(BaseModel):
    time: str = ""
    status: str = ""  # raw gateway value, kept verbatim for the audit log
    status_reason: str = ""
    amount: str = ""

    @property
    def transaction_status(self) -> TransactionStatus:
        return TransactionStatus.from_gateway(self.status)

    def audit_line(self) -> str:
        return f"{self.time}: {self.status} / {self.status_reason} ({self.amount})\n"


class StatusNotification(BaseModel):
    transaction: str

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> Optional["StatusNotification"]:
        """Notification from a decoded callback body; None for foreign or malformed bodies."""
        if not payload:
            return None
        section = payload.get("status_notification")
        if not isinstance(section, Mapping):
            return None
        transaction = section.get("transaction")
        if not transaction or not str(transaction).strip():
            return None
        return cls(transaction=str(transaction).strip())
