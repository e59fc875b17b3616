"""Shared fixtures for vmwriter tests."""

from __future__ import annotations

import httpx
import pytest

from vmwriter.transport import HttpxTransport


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replies with a fixed status."""

    def __init__(self, status_code: int = 204, text: str = "") -> None:
        self.status_code = status_code
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.text)


def make_transport(handler) -> HttpxTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpxTransport(client=client)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()
