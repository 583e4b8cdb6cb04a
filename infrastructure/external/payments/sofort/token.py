"""
Correlation token embedded in the success URL as ``sofort_hash``.

Not a secret: it binds a shopper's return redirect to one payment so it can be
checked by recomputation, without a lookup table.
"""
from __future__ import annotations

import hashlib
from typing import Any


def build_correlation_token(order_number: str, payment_id: Any, config_key: str) -> str:
    raw = f"{order_number}{payment_id}{config_key}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()

