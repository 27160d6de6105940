"""Shared httpx plumbing for gateway adapters: lazy client plus retry/backoff."""

from __future__ import annotations

import asyncio
import logging

import httpx

from logitrack.modules.payments.providers.base import PaymentProviderBase

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_RETRY_STATUSES = {429, 500, 502, 503, 504}
_BASE_BACKOFF_SECONDS = 2.0


class HttpPaymentProvider(PaymentProviderBase):
    """Gateway adapter backed by one ``httpx.AsyncClient``.

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """

    base_url: str = ""
    backoff_seconds: float = _BASE_BACKOFF_SECONDS

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _auth(self) -> httpx.Auth | tuple[str, str] | None:
        return None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=self._auth(),
                headers={"Accept": "application/json"},
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> httpx.Response:
        """Make an HTTP request with exponential backoff for retryable errors."""
        client = await self._get_client()
        gateway = self.name.value

        last_exception: Exception | None = None
        for attempt in range(_MAX_RETRIES + 1):
            try:
                response = await client.request(method, path, **kwargs)
                if response.status_code < 400:
                    return response
                if response.status_code not in _RETRY_STATUSES or attempt >= _MAX_RETRIES:
                    response.raise_for_status()
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    "%s %s %s returned %d, retrying in %.1fs (attempt %d/%d)",
                    gateway, method, path, response.status_code, delay, attempt + 1, _MAX_RETRIES,
                )
                await asyncio.sleep(delay)
            except httpx.HTTPStatusError:
                raise
            except httpx.RequestError as exc:
                last_exception = exc
                if attempt >= _MAX_RETRIES:
                    raise
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    "%s %s %s request error: %s, retrying in %.1fs",
                    gateway, method, path, exc, delay,
                )
                await asyncio.sleep(delay)

        if last_exception:
            raise last_exception
        raise RuntimeError(f"Max retries exceeded for {gateway} request")

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
