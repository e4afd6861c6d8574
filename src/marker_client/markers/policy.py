"""Time-based flush trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .dispatcher import Dispatcher


logger = logging.getLogger(__name__)


@dataclass
class FlushPolicy:
    """
    Flushes buffered markers once they have waited long enough.

    Driven by tick(elapsed) from the host's frame loop or clock. The
    accumulator only runs while markers are buffered, so an idle period
    never causes an immediate flush of the next marker.
    """
    dispatcher: Dispatcher
    interval_seconds: float = 10.0

    _elapsed: float = field(default=0.0, init=False)

    def tick(self, elapsed_seconds: float) -> bool:
        """
        Advance the clock by elapsed_seconds.

        Returns True if a flush was triggered. Never raises.
        """
        if self.dispatcher.buffer.size == 0:
            self._elapsed = 0.0
            return False

        self._elapsed += elapsed_seconds
        if self._elapsed < self.interval_seconds:
            return False

        self._elapsed = 0.0
        try:
            self.dispatcher.flush()
        except Exception as e:
            logger.error(f"Time-based marker flush failed: {e}")
        return True

    @property
    def elapsed(self) -> float:
        """Seconds accumulated since markers started waiting."""
        return self._elapsed
