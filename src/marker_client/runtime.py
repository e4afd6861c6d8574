"""Marker runtime - wires the pipeline together and drives its lifecycle."""

from __future__ import annotations

import asyncio
import atexit
import logging
import time
from dataclasses import dataclass, field

from .config import Config
from .markers.buffer import EventBuffer
from .markers.dispatcher import Dispatcher
from .markers.events import MarkerContext, MarkerFactory
from .markers.policy import FlushPolicy
from .markers.service import MarkersService
from .transport import MarkerTransport, create_transport


logger = logging.getLogger(__name__)


@dataclass
class MarkerRuntime:
    """
    Owns one marker pipeline: buffer, dispatcher, flush policy and service.

    Hosts with their own frame loop call tick(delta) every frame and
    shutdown() once before exit. Asyncio hosts can run run_clock() as a
    background task instead and await aclose() on shutdown.

    Usage:
        runtime = MarkerRuntime.create(config)
        runtime.markers.send_marker("session_start", {"map": "forest"})
        ...
        runtime.tick(delta_seconds)
        ...
        runtime.shutdown()
    """
    config: Config
    transport: MarkerTransport
    buffer: EventBuffer
    dispatcher: Dispatcher
    policy: FlushPolicy
    markers: MarkersService

    # Internal state
    _running: bool = field(default=False, init=False)
    _closed: bool = field(default=False, init=False)

    @classmethod
    def create(
        cls,
        config: Config | None = None,
        transport: MarkerTransport | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> MarkerRuntime:
        """Build a runtime from config, optionally overriding the transport."""
        config = config or Config()
        transport = transport or create_transport(config)

        buffer = EventBuffer(max_size=config.markers.max_buffer_size)
        dispatcher = Dispatcher(buffer=buffer, transport=transport, loop=loop)
        policy = FlushPolicy(
            dispatcher=dispatcher,
            interval_seconds=config.markers.flush_interval_seconds,
        )
        factory = MarkerFactory(
            server_id=config.context.server_id,
            context=MarkerContext(
                sdk_platform=config.context.sdk_platform,
                place_id=config.context.place_id,
                place_version=config.context.place_version,
                origin=config.context.origin,
            ),
        )
        markers = MarkersService(
            factory=factory,
            buffer=buffer,
            dispatcher=dispatcher,
            batch_size=config.markers.batch_size,
        )

        logger.info(
            f"Marker runtime created (transport={type(transport).__name__}, "
            f"batch_size={config.markers.batch_size}, "
            f"interval={config.markers.flush_interval_seconds}s)"
        )
        return cls(
            config=config,
            transport=transport,
            buffer=buffer,
            dispatcher=dispatcher,
            policy=policy,
            markers=markers,
        )

    def tick(self, delta_seconds: float) -> None:
        """Advance the flush clock by one frame. Never raises."""
        self.policy.tick(delta_seconds)

    def shutdown(self) -> None:
        """
        Flush remaining markers, stop the transport and the background
        loop (idempotent).

        Waits up to markers.shutdown_timeout_seconds for in-flight
        batches. Never raises.
        """
        if self._closed:
            return
        self._closed = True
        self._running = False

        try:
            self.dispatcher.shutdown_flush(timeout=self.config.markers.shutdown_timeout_seconds)
        except Exception as e:
            logger.error(f"Final marker flush failed: {e}")

    async def aclose(self) -> None:
        """Async counterpart of shutdown() for asyncio hosts."""
        if self._closed:
            return
        self._closed = True
        self._running = False

        try:
            await self.dispatcher.aclose()
        except Exception as e:
            logger.error(f"Final marker flush failed: {e}")

    def register_atexit(self) -> None:
        """Run shutdown() automatically at interpreter exit."""
        atexit.register(self.shutdown)

    async def run_clock(self, period_seconds: float = 1.0) -> None:
        """
        Background loop that ticks the flush policy with measured time.

        Run as a task; cancel it or call stop_clock() to end it.
        """
        self._running = True
        logger.info(f"Marker clock started (period={period_seconds}s)")

        last = time.monotonic()
        while self._running:
            try:
                await asyncio.sleep(period_seconds)
                now = time.monotonic()
                self.tick(now - last)
                last = now
            except asyncio.CancelledError:
                logger.info("Marker clock cancelled")
                break

    def stop_clock(self) -> None:
        self._running = False

    @property
    def stats(self) -> dict:
        """Get runtime statistics."""
        return {
            "markers": self.markers.stats,
            "dispatcher": self.dispatcher.stats,
        }


def init(api_key: str, config: Config | None = None, register_atexit: bool = True) -> MarkerRuntime:
    """
    Create a runtime for the collector API with the given key.

    Registers shutdown() to run at interpreter exit unless told not to.
    """
    config = config or Config()
    config.api.api_key = api_key

    runtime = MarkerRuntime.create(config)
    if register_atexit:
        runtime.register_atexit()
    return runtime
