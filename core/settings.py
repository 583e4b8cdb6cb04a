"""
Payment-related settings using pydantic-settings v2 with nested env keys.

This module is isolated so core.config.Settings stays application-wide only.
"""
from __future__ import annotations

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 5.0
    write: float = 5.0
    total: float = 10.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class SofortSettings(BaseModel):
    server_url: str = "https://api.sofort.com/api/xml"
    currency: str = "EUR"
    cancel_url: str = "/checkout/payment"
    url_scheme: str = "http"


class LockSettings(BaseModel):
    backend: Literal["memory", "redis"] = "memory"
    timeout: int = 30  # seconds the lock is held at most
    blocking_timeout: int = 10  # seconds to wait for a concurrent reconciliation


class PaymentSettings(BaseSettings):
    default_provider: str = Field(default="sofort", validation_alias="PAYMENT__DEFAULT_PROVIDER")
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    lock: LockSettings = Field(default_factory=LockSettings)

    sofort: SofortSettings = Field(default_factory=SofortSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
