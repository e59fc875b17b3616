"""Base interface for request transports."""

from __future__ import annotations

import abc
from dataclasses import dataclass


@dataclass
class TransportResponse:
    """Status and body returned by the remote endpoint."""

    status_code: int
    body: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class BaseTransport(abc.ABC):
    """Abstract base for transports that POST a request body to a URL."""

    @abc.abstractmethod
    async def post(self, url: str, body: bytes, headers: dict[str, str]) -> TransportResponse:
        """Send *body* and return the response.

        Implementations raise :class:`vmwriter.errors.TransportError` when
        no response could be obtained.
        """

    @abc.abstractmethod
    async def close(self) -> None:
        """Release connections."""
