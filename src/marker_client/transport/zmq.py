"""ZeroMQ transport for marker streaming."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import zmq
import zmq.asyncio

from ..markers.errors import TransportError
from .base import MarkerTransport


logger = logging.getLogger(__name__)


@dataclass
class ZmqTransport(MarkerTransport):
    """
    Transport that publishes envelopes to ZeroMQ.

    Each flush becomes one message: topic + space + envelope JSON.

    Config:
        endpoint: ZMQ endpoint (e.g., "tcp://*:5556")
        topic: Topic prefix for messages (default: "markers")
        socket_type: push | pub (default: pub)
        high_water_mark: Max queued messages before dropping
    """
    endpoint: str = "tcp://*:5556"
    topic: str = "markers"
    socket_type: str = "pub"  # pub | push
    high_water_mark: int = 10000

    # Internal state
    _context: Any = field(default=None, init=False)
    _socket: Any = field(default=None, init=False)

    async def start(self) -> None:
        context = zmq.asyncio.Context()
        socket = context.socket(zmq.PUB if self.socket_type == "pub" else zmq.PUSH)
        socket.set_hwm(self.high_water_mark)
        try:
            socket.bind(self.endpoint)
        except zmq.ZMQError:
            socket.close(linger=0)
            context.term()
            raise

        self._context = context
        self._socket = socket

        logger.info(f"ZMQ transport started on {self.endpoint} ({self.socket_type})")

    async def stop(self) -> None:
        if self._socket is not None:
            self._socket.close(linger=0)
            self._socket = None
        if self._context is not None:
            self._context.term()
            self._context = None

        logger.info("ZMQ transport stopped")

    async def send(self, envelope: dict[str, Any]) -> None:
        if self._socket is None:
            try:
                await self.start()
            except zmq.ZMQError as e:
                raise TransportError(f"ZMQ bind error on {self.endpoint}: {e}") from e

        message = f"{self.topic} {json.dumps(envelope, default=str)}"
        try:
            await self._socket.send_string(message)
        except zmq.ZMQError as e:
            raise TransportError(f"ZMQ send error: {e}") from e

    async def health_check(self) -> bool:
        return self._socket is not None

    @property
    def bound_endpoint(self) -> str | None:
        """Actual endpoint after bind (resolves wildcard ports)."""
        if self._socket is None:
            return None
        return self._socket.getsockopt_string(zmq.LAST_ENDPOINT)
