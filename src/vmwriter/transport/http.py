"""httpx-based transport – POSTs request bodies with an ``AsyncClient``."""

from __future__ import annotations

import logging

import httpx

from ..errors import TransportError
from .base import BaseTransport, TransportResponse

logger = logging.getLogger(__name__)


class HttpxTransport(BaseTransport):
    """Sends requests through :class:`httpx.AsyncClient`.

    Pass *client* to reuse an existing client (its lifetime stays with the
    caller); otherwise one is created lazily and closed by :meth:`close`.
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._headers = dict(headers or {})
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, headers=self._headers)
            logger.debug("Created httpx client (timeout=%.1fs)", self._timeout)
        return self._client

    async def post(self, url: str, body: bytes, headers: dict[str, str]) -> TransportResponse:
        client = self._get_client()
        request_headers = {**self._headers, **headers}
        try:
            resp = await client.post(url, content=body, headers=request_headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"error sending request to {url}: {exc}", cause=exc) from exc
        return TransportResponse(status_code=resp.status_code, body=resp.text)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed httpx client")
