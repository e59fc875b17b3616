"""Metrics writer – buffers series and sends them to the import endpoint."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .buffer import SeriesBuffer
from .config import WriterConfig
from .encoder import CONTENT_TYPE, IMPORT_PATH, encode_series_list
from .errors import RemoteError
from .series import Number, Series, TimestampLike
from .transport import BaseTransport, HttpxTransport

logger = logging.getLogger(__name__)


def build_import_url(endpoint: str) -> str:
    """Return the import URL for *endpoint* (``host:port`` or a base URL)."""
    base = endpoint.rstrip("/")
    if not base.startswith(("http://", "https://")):
        base = f"http://{base}"
    return f"{base}{IMPORT_PATH}"


class MetricsWriter:
    """Accumulates series and pushes them in one request per :meth:`send`.

    Usage::

        writer = MetricsWriter("localhost:8428")
        writer.add(
            "up",
            {"job": "node_exporter", "instance": "localhost:9100"},
            [0, 0, 0],
            [1549891472010, 1549891487724, 1549891503438],
        )
        await writer.send()

    The buffer is cleared only when the endpoint answers with a 2xx
    status. On any failure the buffered series are kept, so calling
    :meth:`send` again retransmits them. There is no retry of its own.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        transport: BaseTransport | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = build_import_url(endpoint)
        self._buffer = SeriesBuffer()
        self._transport = transport or HttpxTransport(timeout=timeout, headers=headers)

    @classmethod
    def from_config(cls, config: WriterConfig, *, transport: BaseTransport | None = None) -> MetricsWriter:
        return cls(
            config.endpoint,
            transport=transport,
            headers=config.headers,
            timeout=config.timeout_seconds,
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def pending(self) -> int:
        """Number of series waiting to be sent."""
        return len(self._buffer)

    def add(
        self,
        name: str,
        labels: Mapping[str, str] | None,
        values: Iterable[Number],
        timestamps: Iterable[TimestampLike],
    ) -> None:
        """Validate a series and append it to the buffer.

        Raises :class:`~vmwriter.errors.ValidationError` and leaves the
        buffer unchanged if the series is rejected.
        """
        series = Series.build(name, labels, values, timestamps)
        self._buffer.append(series)
        logger.debug(
            "Buffered series %s (%d samples, %d pending)",
            series.name, series.sample_count, len(self._buffer),
        )

    def buffered(self) -> list[Series]:
        """Return a copy of the buffered series in insertion order."""
        return self._buffer.snapshot()

    def payload(self) -> bytes:
        """Encode the current buffer without sending or clearing it."""
        return encode_series_list(self._buffer.snapshot())

    async def send(self) -> None:
        """POST the whole buffer to the import endpoint.

        An empty buffer is a no-op. Raises
        :class:`~vmwriter.errors.TransportError` or
        :class:`~vmwriter.errors.RemoteError` on failure, with the buffer
        left as it was.
        """
        batch = self._buffer.snapshot()
        if not batch:
            return

        body = encode_series_list(batch)
        try:
            resp = await self._transport.post(self._url, body, {"Content-Type": CONTENT_TYPE})
        except BaseException:
            logger.warning("Send of %d series to %s failed, keeping buffer", len(batch), self._url)
            raise

        if not resp.is_success:
            logger.warning(
                "Import endpoint %s returned %d, keeping %d series",
                self._url, resp.status_code, len(batch),
            )
            raise RemoteError(resp.status_code, resp.body)

        self._buffer.discard(batch)
        logger.info(
            "Sent %d series (%d samples, %d bytes) to %s",
            len(batch), sum(s.sample_count for s in batch), len(body), self._url,
        )

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> MetricsWriter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
