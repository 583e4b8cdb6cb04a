"""
SOFORT (Klarna) multipay XML API: config key parsing, request codec,
response parsing and correlation tokens.
"""
from .codec import (
    build_base_url,
    build_headers,
    build_initiation_request,
    build_status_query_request,
    initiation_request_for,
)
from .config import resolve_config
from .parser import (
    parse_initiation_response,
    parse_transaction_details,
    parse_xml,
)
from .token import build_correlation_token

__all__ = [
    "build_base_url",
    "build_headers",
    "build_initiation_request",
    "build_status_query_request",
    "initiation_request_for",
    "resolve_config",
    "parse_initiation_response",
    "parse_transaction_details",
    "parse_xml",
    "build_correlation_token",
]
