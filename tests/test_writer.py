"""Tests for MetricsWriter add/send behaviour."""

import asyncio

import httpx
import pytest

from conftest import RecordingHandler, make_transport
from vmwriter import MetricsWriter, RemoteError, TransportError, ValidationError
from vmwriter.config import WriterConfig
from vmwriter.transport import BaseTransport, TransportResponse
from vmwriter.writer import build_import_url

EXPECTED_UP = (
    b'{"metric":{"__name__":"up","instance":"localhost:9100","job":"node_exporter"},'
    b'"values":[0,0,0],"timestamps":[1549891472010,1549891487724,1549891503438]}\n'
)


def _add_up(writer: MetricsWriter) -> None:
    writer.add(
        "up",
        {"job": "node_exporter", "instance": "localhost:9100"},
        [0, 0, 0],
        [1549891472010, 1549891487724, 1549891503438],
    )


# ---------------------------------------------------------------------------
# URL building
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "endpoint, url",
    [
        ("localhost:8428", "http://localhost:8428/api/v1/import"),
        ("localhost:8428/", "http://localhost:8428/api/v1/import"),
        ("http://vm:8428", "http://vm:8428/api/v1/import"),
        ("https://vm.example.com/", "https://vm.example.com/api/v1/import"),
    ],
)
def test_build_import_url(endpoint, url):
    assert build_import_url(endpoint) == url


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------

class TestAdd:
    """Validation on add leaves the buffer untouched."""

    def test_add_buffers_series(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)
        assert writer.pending == 1
        assert writer.payload() == EXPECTED_UP

    def test_length_mismatch_rejected(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)
        with pytest.raises(ValidationError) as excinfo:
            writer.add("up", {}, [1, 2, 3], [1, 2])
        assert excinfo.value.rule == "length_mismatch"
        assert writer.pending == 1

    def test_reserved_label_rejected(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        with pytest.raises(ValidationError):
            writer.add("up", {"__name__": "other"}, [1], [1])
        assert writer.pending == 0

    def test_empty_name_rejected(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        with pytest.raises(ValidationError):
            writer.add("", {}, [1], [1])
        assert writer.pending == 0

    def test_payload_does_not_clear(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)
        writer.payload()
        assert writer.pending == 1

    def test_order_preserved(self, handler):
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        for name in ("c", "a", "b"):
            writer.add(name, {}, [1], [1])
        assert [s.name for s in writer.buffered()] == ["c", "a", "b"]


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------

class TestSend:
    """Clear-on-success and retain-on-failure semantics."""

    def test_scenario_single_post(self):
        handler = RecordingHandler(status_code=204)
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)

        asyncio.run(writer.send())

        assert len(handler.requests) == 1
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:8428/api/v1/import"
        assert request.content == EXPECTED_UP
        assert request.headers["content-type"] == "application/json"
        assert writer.pending == 0

    def test_second_send_is_noop(self):
        handler = RecordingHandler(status_code=200)
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)

        async def _run():
            await writer.send()
            await writer.send()

        asyncio.run(_run())
        assert len(handler.requests) == 1

    def test_empty_buffer_no_request(self):
        handler = RecordingHandler()
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        asyncio.run(writer.send())
        assert handler.requests == []

    def test_remote_error_retains_buffer(self):
        handler = RecordingHandler(status_code=400, text="cannot parse JSON line")
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)
        writer.add("up", {"job": "prometheus"}, [1], [1549891461511])

        with pytest.raises(RemoteError) as excinfo:
            asyncio.run(writer.send())

        assert excinfo.value.status_code == 400
        assert excinfo.value.body == "cannot parse JSON line"
        assert writer.pending == 2

    def test_retry_after_remote_error_resends_same_body(self):
        handler = RecordingHandler(status_code=503, text="busy")
        writer = MetricsWriter("localhost:8428", transport=make_transport(handler))
        _add_up(writer)

        async def _run():
            with pytest.raises(RemoteError):
                await writer.send()
            handler.status_code = 204
            await writer.send()

        asyncio.run(_run())
        assert len(handler.requests) == 2
        assert handler.requests[0].content == handler.requests[1].content == EXPECTED_UP
        assert writer.pending == 0

    def test_transport_error_retains_buffer(self):
        def _refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        writer = MetricsWriter("localhost:8428", transport=make_transport(_refuse))
        _add_up(writer)

        with pytest.raises(TransportError) as excinfo:
            asyncio.run(writer.send())

        assert isinstance(excinfo.value.cause, httpx.ConnectError)
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
        assert writer.pending == 1

    def test_timeout_is_transport_error(self):
        def _timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        writer = MetricsWriter("localhost:8428", transport=make_transport(_timeout))
        _add_up(writer)

        with pytest.raises(TransportError):
            asyncio.run(writer.send())
        assert writer.pending == 1


class _SlowTransport(BaseTransport):
    """Transport that blocks until released, to interleave add with send."""

    def __init__(self, status_code: int = 204) -> None:
        self.status_code = status_code
        self.bodies: list[bytes] = []
        self.started: asyncio.Event | None = None
        self.release: asyncio.Event | None = None

    async def post(self, url, body, headers):
        self.bodies.append(body)
        self.started.set()
        await self.release.wait()
        return TransportResponse(status_code=self.status_code)

    async def close(self):
        pass


class TestConcurrency:
    """Series added while a send is in flight stay buffered."""

    def test_add_during_send_is_kept(self):
        transport = _SlowTransport()
        writer = MetricsWriter("localhost:8428", transport=transport)
        writer.add("a", {}, [1], [1])

        async def _run():
            transport.started = asyncio.Event()
            transport.release = asyncio.Event()
            task = asyncio.create_task(writer.send())
            await transport.started.wait()
            writer.add("b", {}, [2], [2])
            transport.release.set()
            await task

        asyncio.run(_run())
        assert [s.name for s in writer.buffered()] == ["b"]
        assert b'"__name__":"b"' not in transport.bodies[0]

    def test_overlapping_sends_keep_unsent_series(self):
        transport = _SlowTransport()
        writer = MetricsWriter("localhost:8428", transport=transport)
        writer.add("a", {}, [1], [1])

        async def _run():
            transport.started = asyncio.Event()
            transport.release = asyncio.Event()
            first = asyncio.create_task(writer.send())
            second = asyncio.create_task(writer.send())
            while len(transport.bodies) < 2:
                await asyncio.sleep(0)
            writer.add("c", {}, [3], [3])
            transport.release.set()
            await asyncio.gather(first, second)

        asyncio.run(_run())
        assert all(b'"__name__":"c"' not in body for body in transport.bodies)
        assert [s.name for s in writer.buffered()] == ["c"]

    def test_cancelled_send_retains_buffer(self):
        transport = _SlowTransport()
        writer = MetricsWriter("localhost:8428", transport=transport)
        writer.add("a", {}, [1], [1])

        async def _run():
            transport.started = asyncio.Event()
            transport.release = asyncio.Event()
            task = asyncio.create_task(writer.send())
            await transport.started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_run())
        assert writer.pending == 1


# ---------------------------------------------------------------------------
# lifecycle
# ---------------------------------------------------------------------------

def test_from_config():
    cfg = WriterConfig(endpoint="vm:8428", timeout_seconds=3.0, headers={"X-Tenant": "1"})
    writer = MetricsWriter.from_config(cfg)
    assert writer.url == "http://vm:8428/api/v1/import"


def test_async_context_manager_closes_transport():
    closed = []

    class _Transport(BaseTransport):
        async def post(self, url, body, headers):
            return TransportResponse(status_code=204)

        async def close(self):
            closed.append(True)

    async def _run():
        async with MetricsWriter("localhost:8428", transport=_Transport()) as writer:
            writer.add("up", {}, [1], [1])
            await writer.send()

    asyncio.run(_run())
    assert closed == [True]


def test_writers_are_independent(handler):
    w1 = MetricsWriter("localhost:8428", transport=make_transport(handler))
    w2 = MetricsWriter("localhost:8428", transport=make_transport(handler))
    w1.add("up", {}, [1], [1])
    assert w1.pending == 1
    assert w2.pending == 0
