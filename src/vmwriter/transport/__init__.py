"""HTTP transports used by :class:`vmwriter.MetricsWriter`."""

from .base import BaseTransport, TransportResponse
from .http import HttpxTransport

__all__ = ["BaseTransport", "HttpxTransport", "TransportResponse"]
