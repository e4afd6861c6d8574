"""Tests for batch dispatch."""

import asyncio
import json
import logging

import pytest

from marker_client.markers.buffer import EventBuffer
from marker_client.markers.dispatcher import Dispatcher
from marker_client.markers.envelope import MarkersEnvelope
from marker_client.markers.errors import ConfigurationError
from marker_client.markers.events import MarkerFactory
from marker_client.transport.base import MarkerTransport


@pytest.fixture
def factory():
    return MarkerFactory(server_id="server-1")


def fill(buffer, factory, count, prefix="evt"):
    records = [factory.create(f"{prefix}-{i}", {"i": i}) for i in range(count)]
    for record in records:
        buffer.append(record)
    return records


class TestFlush:
    @pytest.mark.asyncio
    async def test_flush_sends_one_envelope(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        records = fill(buffer, factory, 3)

        pending = dispatcher.flush()
        assert pending is not None
        assert buffer.size == 0

        await dispatcher.wait_pending()
        assert len(transport.envelopes) == 1
        assert [m["markerId"] for m in transport.markers] == [r.marker_id for r in records]
        assert dispatcher.stats["batches_sent"] == 1
        assert dispatcher.stats["markers_sent"] == 3
        assert dispatcher.in_flight == 0

    @pytest.mark.asyncio
    async def test_flush_empty_buffer_is_noop(self, transport):
        dispatcher = Dispatcher(buffer=EventBuffer(), transport=transport)

        assert dispatcher.flush() is None
        await dispatcher.wait_pending()
        assert transport.attempts == 0

    @pytest.mark.asyncio
    async def test_flush_does_not_block(self, factory):
        release = asyncio.Event()
        sent = []

        class GatedTransport(MarkerTransport):
            async def send(self, envelope):
                await release.wait()
                sent.append(envelope)

        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=GatedTransport())
        fill(buffer, factory, 2)

        dispatcher.flush()
        await asyncio.sleep(0)
        assert sent == []
        assert dispatcher.in_flight == 1

        release.set()
        await dispatcher.wait_pending()
        assert len(sent) == 1

    @pytest.mark.asyncio
    async def test_concurrent_flushes_own_their_batches(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)

        first = fill(buffer, factory, 2, prefix="first")
        dispatcher.flush()
        second = fill(buffer, factory, 3, prefix="second")
        dispatcher.flush()

        await dispatcher.wait_pending()
        batches = sorted(transport.envelopes, key=lambda e: len(e["markers"]))
        assert [m["markerId"] for m in batches[0]["markers"]] == [r.marker_id for r in first]
        assert [m["markerId"] for m in batches[1]["markers"]] == [r.marker_id for r in second]


class TestFailures:
    @pytest.mark.asyncio
    async def test_transport_failure_is_logged_not_raised(self, factory, failing_transport, caplog):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=failing_transport)
        fill(buffer, factory, 4)

        with caplog.at_level(logging.ERROR):
            dispatcher.flush()
            await dispatcher.wait_pending()

        assert failing_transport.attempts == 1
        assert dispatcher.stats["flush_errors"] == 1
        assert dispatcher.stats["batches_sent"] == 0
        # Failed batches are not re-buffered
        assert buffer.size == 0
        assert any("HTTP 503" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_unexpected_error_is_logged(self, factory, caplog):
        class BrokenTransport(MarkerTransport):
            async def send(self, envelope):
                raise RuntimeError("socket exploded")

        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=BrokenTransport())
        fill(buffer, factory, 1)

        dispatcher.flush()
        await dispatcher.wait_pending()

        assert dispatcher.stats["flush_errors"] == 1
        assert any("socket exploded" in r.getMessage() for r in caplog.records)

    def test_unconfigured_transport_raises_and_keeps_buffer(self, factory, unconfigured_transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=unconfigured_transport)
        fill(buffer, factory, 2)

        with pytest.raises(ConfigurationError):
            dispatcher.flush()

        assert buffer.size == 2
        assert unconfigured_transport.attempts == 0


class TestThreadedDispatch:
    def test_flush_without_loop_uses_background_loop(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        fill(buffer, factory, 5)

        dispatcher.flush()
        assert dispatcher.join(timeout=5.0)
        assert len(transport.markers) == 5

        dispatcher.shutdown_flush(timeout=1.0)
        assert dispatcher._worker is None

    @pytest.mark.asyncio
    async def test_flush_from_thread_runs_on_host_loop(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport, loop=asyncio.get_running_loop())
        fill(buffer, factory, 2)

        await asyncio.to_thread(dispatcher.flush)
        await dispatcher.wait_pending()

        assert len(transport.markers) == 2
        assert dispatcher._worker is None

    def test_shutdown_flush_sends_remaining(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        fill(buffer, factory, 3)

        dispatcher.shutdown_flush(timeout=5.0)

        assert buffer.size == 0
        assert len(transport.envelopes) == 1
        assert len(transport.envelopes[0]["markers"]) == 3

    def test_shutdown_flush_stops_transport(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        fill(buffer, factory, 1)

        dispatcher.shutdown_flush(timeout=5.0)

        assert transport.stops == 1
        assert dispatcher._worker is None

    def test_shutdown_flush_cancels_stuck_sends(self, factory, caplog):
        class HangingTransport(MarkerTransport):
            async def send(self, envelope):
                await asyncio.sleep(3600)

        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=HangingTransport())
        fill(buffer, factory, 2)
        dispatcher.flush()

        with caplog.at_level(logging.WARNING):
            dispatcher.shutdown_flush(timeout=0.1)

        assert dispatcher.in_flight == 0
        assert dispatcher._worker is None
        assert dispatcher.stats["markers_sent"] == 0
        assert any("Cancelling 1 marker sends" in r.getMessage() for r in caplog.records)
        # Nothing left to wait for once the loop is gone
        asyncio.run(asyncio.wait_for(dispatcher.wait_pending(), timeout=1.0))

    def test_shutdown_flush_stops_worker_on_config_error(self, factory, unconfigured_transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=unconfigured_transport)
        fill(buffer, factory, 1)

        with pytest.raises(ConfigurationError):
            dispatcher.shutdown_flush(timeout=1.0)
        assert dispatcher._worker is None

    @pytest.mark.asyncio
    async def test_aclose(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        fill(buffer, factory, 3)

        await dispatcher.aclose()

        assert buffer.size == 0
        assert len(transport.markers) == 3
        assert transport.stops == 1


class TestEnvelopeRoundTrip:
    @pytest.mark.asyncio
    async def test_receiver_sees_same_markers(self, factory, transport):
        buffer = EventBuffer()
        dispatcher = Dispatcher(buffer=buffer, transport=transport)
        records = [
            factory.create("purchase", {"item": "sword", "price": 9.99}),
            factory.create("level", {"level": 4, "path": ["a", "b"]}),
            factory.create("empty", None),
        ]
        for record in records:
            buffer.append(record)

        dispatcher.flush()
        await dispatcher.wait_pending()

        wire = json.dumps(transport.envelopes[0])
        received = MarkersEnvelope.model_validate(json.loads(wire))

        assert len(received.markers) == len(records)
        for payload, record in zip(received.markers, records):
            assert payload.marker_id == record.marker_id
            assert payload.timestamp == record.timestamp
            assert payload.type == record.name
            assert payload.value == record.value
            assert payload.server_id == "server-1"
            assert payload.properties.sdk_platform == "roblox"
