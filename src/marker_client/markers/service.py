"""Public marker API."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from .buffer import EventBuffer
from .dispatcher import Dispatcher
from .errors import ValidationError
from .events import MarkerFactory


logger = logging.getLogger(__name__)


@dataclass
class MarkersService:
    """
    Entry point for application code emitting markers.

    send_marker validates synchronously, buffers the marker and flushes
    once batch_size markers are waiting. It never raises: invalid
    markers and flush failures are logged and the marker is dropped.

    Usage:
        service.send_marker("level_complete", {"level": 3, "time": 41.2})
    """
    factory: MarkerFactory
    buffer: EventBuffer
    dispatcher: Dispatcher

    # Flush once this many markers are buffered
    batch_size: int = 10

    # Internal state
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _stats: dict = field(default_factory=dict, init=False)

    def __post_init__(self):
        self._stats = {
            "accepted": 0,
            "rejected": 0,
        }

    def send_marker(self, name: str, value: Any = None) -> bool:
        """
        Emit a marker (non-blocking). Never raises.

        Returns True if buffered, False if rejected.
        """
        try:
            record = self.factory.create(name, value)
        except ValidationError as e:
            logger.error(f"Marker '{name}' rejected: {e}")
            self._count("rejected")
            return False
        except Exception as e:
            logger.exception(f"Marker '{name}' could not be created: {e}")
            self._count("rejected")
            return False

        size = self.buffer.append(record)
        self._count("accepted")

        if size >= self.batch_size:
            try:
                self.dispatcher.flush()
            except Exception as e:
                logger.error(f"Size-based marker flush failed: {e}")

        return True

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    @property
    def stats(self) -> dict:
        """Get marker statistics."""
        with self._lock:
            return {
                **self._stats,
                "buffer_size": self.buffer.size,
            }
