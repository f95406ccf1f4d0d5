"""
Base payment gateway client implementing shared concerns: http, retry, logging, errors.

Concrete gateways subclass it, declare their endpoints and translate the
gateway's error body via `_error_details`.
"""
from __future__ import annotations

from typing import Any, Callable, Optional
from contextlib import asynccontextmanager

import httpx
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from shared.codes.payment_codes import PaymentCode


logger = get_logger(__name__)


RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
# Reads are replayed on retryable statuses and on any transport failure.
# Writes are replayed only when the request never reached the gateway: a read
# timeout on a refund may mean the refund was already issued.
IDEMPOTENT_METHODS = {"GET", "HEAD"}
CONNECT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


class _RetryableStatus(Exception):
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"retryable status {response.status_code}")


READ_RETRY_ERRORS = (httpx.TimeoutException, httpx.TransportError, _RetryableStatus)


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        base_url: str,
        auth: Optional[httpx.Auth | tuple[str, str]] = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeouts_cfg = timeouts or {"connect": 1.0, "read": 3.0, "write": 3.0, "total": 5.0}
        self._retry_cfg = retry or {"max": 2, "base": 0.2}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

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
            self._client = httpx.AsyncClient(
                timeout=self.timeouts,
                auth=self._auth,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
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

    async def _retry(self, fn: Callable[[], Any], *, retry_on: tuple[type[BaseException], ...] = READ_RETRY_ERRORS):
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(int(self._retry_cfg["max"]) + 1),
            wait=wait_exponential(multiplier=self._retry_cfg["base"], min=0, max=2.0),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        ):
            with attempt:
                return await fn()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        method = method.upper()
        url = f"{self.base_url}/{path.lstrip('/')}"
        idempotent = method in IDEMPOTENT_METHODS

        async def _send() -> httpx.Response:
            async with self.client() as http:
                resp = await http.request(method, url, params=params, json=json)
            if resp.status_code in RETRY_STATUS_CODES and idempotent:
                raise _RetryableStatus(resp)
            return resp

        try:
            resp = await self._retry(_send, retry_on=READ_RETRY_ERRORS if idempotent else CONNECT_ERRORS)
        except _RetryableStatus as exc:
            resp = exc.response
        except httpx.TimeoutException as exc:
            self._log("gateway_timeout", method=method, path=path, error=str(exc))
            raise PaymentRecoverableError(
                f"{self.provider} request timed out: {exc}",
                provider=self.provider,
                code=PaymentCode.TIMEOUT,
            ) from exc
        except httpx.TransportError as exc:
            self._log("gateway_transport_error", method=method, path=path, error=str(exc))
            raise PaymentRecoverableError(
                f"{self.provider} request failed: {exc}", provider=self.provider
            ) from exc

        if resp.is_error:
            self._raise_for_response(resp, method=method, path=path)
        try:
            return resp.json()
        except ValueError as exc:
            raise PaymentProviderError(
                "Invalid JSON in gateway response", provider=self.provider, status_code=resp.status_code
            ) from exc

    def _raise_for_response(self, resp: httpx.Response, *, method: str, path: str) -> None:
        provider_code, message = self._error_details(resp)
        self._log(
            "gateway_error_response",
            method=method,
            path=path,
            status_code=resp.status_code,
            provider_code=provider_code,
        )
        if resp.status_code == 429:
            raise PaymentRecoverableError(
                message,
                provider=self.provider,
                provider_code=provider_code,
                status_code=resp.status_code,
                code=PaymentCode.RATE_LIMITED,
            )
        error_cls = PaymentRecoverableError if resp.status_code in RETRY_STATUS_CODES else PaymentProviderError
        raise error_cls(
            message,
            provider=self.provider,
            provider_code=provider_code,
            status_code=resp.status_code,
        )

    def _error_details(self, resp: httpx.Response) -> tuple[Optional[str], str]:
        """Extract (provider_code, message) from an error response. Override per gateway."""
        return None, f"{self.provider} request failed with status {resp.status_code}"

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
