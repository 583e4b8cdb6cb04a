"""
Base payment client implementing shared concerns: http, retry, logging.

Concrete providers subclass and implement `_decode` plus provider-specific
request building.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional
from contextlib import asynccontextmanager

import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import GatewayProtocolError


logger = get_logger(__name__)

RETRY_ANY_TRANSPORT = (httpx.TimeoutException, httpx.TransportError)
RETRY_CONNECT_ONLY = (httpx.ConnectError, httpx.ConnectTimeout)


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 3.0, "write": 3.0, "total": 5.0}
        self._retry_cfg = retry or {"max": 2, "base": 0.2}
        self._client: Optional[httpx.AsyncClient] = None
        self._http_transport = http_transport

    @property
    def timeouts(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._timeouts_cfg["connect"],
            read=self._timeouts_cfg["read"],
            write=self._timeouts_cfg["write"],
            timeout=self._timeouts_cfg["total"],
        )

    @asynccontextmanager
    async def client(self):
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeouts, transport=self._http_transport)
        try:
            yield self._client
        finally:
            # Keep open for reuse; explicit aclose() will close.
            ...

    async def aclose(self) -> None:
        """Close underlying HTTP client if created."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _retry(self, fn: Callable[[], Any], retry_on: tuple[type[BaseException], ...] = RETRY_ANY_TRANSPORT):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0.1, max=2.0),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        ):
            with attempt:
                return await fn()

    def _decode(self, response: httpx.Response) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    async def post(
        self,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
        *,
        idempotent: bool = True,
    ) -> Optional[dict[str, Any]]:
        """Send one request; None stands for unreachable, rejected or unparsable.

        A non-idempotent request may already have been accepted once the
        connection is up, so it is only retried on connect failures.
        """

        async def _send() -> httpx.Response:
            async with self.client() as http:
                return await http.post(url, headers=dict(headers), content=body)

        try:
            response = await self._retry(_send, RETRY_ANY_TRANSPORT if idempotent else RETRY_CONNECT_ONLY)
        except httpx.HTTPError as exc:
            self._log("gateway_transport_failed", url=url, error=str(exc), level="warning")
            return None

        if not response.is_success:
            event = "gateway_unauthorized" if response.status_code in (401, 403) else "gateway_http_error"
            self._log(event, url=url, status_code=response.status_code, level="warning")
            return None
        try:
            return self._decode(response)
        except GatewayProtocolError as exc:
            self._log("gateway_response_unparsable", url=url, status_code=response.status_code, error=exc.message, level="warning")
            return None

    def _log(self, event: str, *, level: str = "info", **kwargs) -> None:
        getattr(logger, level)(
            event,
            provider=self.provider,
            **kwargs,
        )
