"""Fire-and-forget batch dispatch."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from ..transport.base import MarkerTransport
from .buffer import EventBuffer
from .envelope import MarkersEnvelope
from .errors import TransportError
from .events import MarkerRecord


logger = logging.getLogger(__name__)


class _LoopThread:
    """Private event loop running on a daemon thread."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="marker-dispatch", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self._cancel_remaining()
            self.loop.close()

    def _cancel_remaining(self) -> None:
        # Sends still running at stop are cancelled so their futures resolve
        remaining = asyncio.all_tasks(self.loop)
        if not remaining:
            return
        logger.warning(f"Cancelling {len(remaining)} marker sends still in flight")
        for task in remaining:
            task.cancel()
        self.loop.run_until_complete(asyncio.gather(*remaining, return_exceptions=True))

    def stop(self, timeout: float | None = None) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)


@dataclass
class Dispatcher:
    """
    Drains the buffer and sends each batch as one envelope.

    flush() never waits for delivery. The send runs as a detached task:
    - on the caller's event loop when called from a coroutine
    - on the host loop given as `loop` when called from another thread
    - otherwise on a private background loop started on first use

    Delivery failures are logged and counted. Failed batches are not
    retried or re-buffered.
    """
    buffer: EventBuffer
    transport: MarkerTransport

    # Host event loop for sends initiated from other threads
    loop: asyncio.AbstractEventLoop | None = None

    # Internal state
    _pending: set[Any] = field(default_factory=set, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _worker: _LoopThread | None = field(default=None, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "batches_sent": 0,
            "markers_sent": 0,
            "flush_errors": 0,
        }

    def flush(self) -> asyncio.Future | concurrent.futures.Future | None:
        """
        Drain the buffer and start sending it.

        Returns the in-flight send (task or future), or None when the
        buffer was empty.

        Raises:
            ConfigurationError: If the transport is not configured. The
                buffer is left untouched.
        """
        self.transport.ensure_configured()

        batch = self.buffer.drain_all()
        if not batch:
            return None

        return self._schedule(self._send(batch))

    def shutdown_flush(self, timeout: float | None = 5.0) -> None:
        """
        Final flush for process teardown.

        Starts the last send, waits up to `timeout` seconds for in-flight
        sends, stops the transport, then stops the background loop. Sends
        still running at that point are cancelled. Sends scheduled on the
        calling thread's own running loop cannot be waited on here; use
        aclose() from async code.
        """
        try:
            self.flush()
            self.join(timeout)
        finally:
            self._stop_transport(timeout)
            self._stop_worker()
            logger.info(f"Marker dispatcher stopped. Stats: {self.stats}")

    async def aclose(self) -> None:
        """Final flush for async hosts: send, await in-flight sends, stop."""
        try:
            self.flush()
        finally:
            await self.wait_pending()
            try:
                await self.transport.stop()
            except Exception as e:
                logger.error(f"Error stopping marker transport: {e}")
            self._stop_worker()
            logger.info(f"Marker dispatcher stopped. Stats: {self.stats}")

    async def wait_pending(self) -> None:
        """Wait until every in-flight send has completed."""
        loop = asyncio.get_running_loop()
        waitables = []
        for pending in self._snapshot_pending():
            if isinstance(pending, concurrent.futures.Future):
                waitables.append(asyncio.wrap_future(pending))
            elif pending.get_loop() is loop:
                waitables.append(pending)
        if waitables:
            await asyncio.gather(*waitables, return_exceptions=True)

    def join(self, timeout: float | None = None) -> bool:
        """
        Block until sends running on other threads have completed.

        Returns True if nothing is left in flight on other threads.
        """
        futures = [p for p in self._snapshot_pending() if isinstance(p, concurrent.futures.Future)]
        if not futures:
            return True
        _, not_done = concurrent.futures.wait(futures, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} marker batches still in flight after {timeout}s")
        return not not_done

    async def _send(self, batch: list[MarkerRecord]) -> bool:
        """Deliver one batch. Never raises."""
        try:
            envelope = MarkersEnvelope.from_records(batch).to_dict()
            await self.transport.send(envelope)
        except TransportError as e:
            logger.error(f"Error sending {len(batch)} markers: {e}")
            self._count("flush_errors")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error sending {len(batch)} markers: {e}")
            self._count("flush_errors")
            return False

        self._count("batches_sent")
        self._count("markers_sent", len(batch))
        logger.info(f"Successfully sent {len(batch)} markers")
        return True

    def _schedule(self, coro) -> asyncio.Future | concurrent.futures.Future:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None and (self.loop is None or self.loop is running):
            pending = running.create_task(coro)
        else:
            target = self.loop if self.loop is not None and self.loop.is_running() else self._ensure_worker()
            pending = asyncio.run_coroutine_threadsafe(coro, target)

        with self._lock:
            self._pending.add(pending)
        pending.add_done_callback(self._forget)
        return pending

    def _forget(self, pending: Any) -> None:
        with self._lock:
            self._pending.discard(pending)

    def _snapshot_pending(self) -> list[Any]:
        with self._lock:
            return list(self._pending)

    def _ensure_worker(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._worker is None:
                self._worker = _LoopThread()
                logger.debug("Started background marker dispatch loop")
            return self._worker.loop

    def _stop_transport(self, timeout: float | None) -> None:
        """Run transport.stop() on the background loop and wait for it."""
        try:
            future = asyncio.run_coroutine_threadsafe(self.transport.stop(), self._ensure_worker())
            future.result(timeout)
        except Exception as e:
            logger.error(f"Error stopping marker transport: {e}")

    def _stop_worker(self) -> None:
        with self._lock:
            worker, self._worker = self._worker, None
        if worker is not None:
            worker.stop(timeout=1.0)

    def _count(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._stats[key] += amount

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def stats(self) -> dict:
        """Get dispatcher statistics."""
        with self._lock:
            return {
                **self._stats,
                "in_flight": len(self._pending),
                "buffer_size": self.buffer.size,
                "dropped": self.buffer.dropped,
            }
