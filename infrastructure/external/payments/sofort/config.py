"""
Merchant config key parsing.

The key is copied verbatim from the SOFORT merchant backend and has the form
``<user_id>:<project_id>:<api_key>``.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import GatewayConfig
from domain.common.exceptions import GatewayConfigError


def resolve_config(config_key: Optional[str]) -> GatewayConfig:
    if not config_key or not config_key.strip():
        raise GatewayConfigError("Config key is blank")
    parts = config_key.strip().split(":")
    if len(parts) < 3:
        raise GatewayConfigError("Config key is invalid", details={"fields": len(parts)})
    return GatewayConfig(merchant_id=parts[0], project_id=parts[1], api_key=parts[2])
