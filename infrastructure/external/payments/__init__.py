"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Any, Optional

from core.settings import payment_settings
from application.ports.payment_gateway import PaymentGateway


SOFORT_ALIASES = frozenset({"sofort", "sofortueberweisung", "klarna"})


def get_payment_gateway(provider: Optional[str] = None, **kwargs: Any) -> PaymentGateway:
    name = (provider or payment_settings.default_provider).lower()
    if name in SOFORT_ALIASES:
        from .sofort_client import SofortClient
        return SofortClient(**kwargs)
    raise ValueError(f"Unsupported payment provider: {name}")
