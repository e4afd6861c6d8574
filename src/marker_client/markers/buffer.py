"""Thread-safe pending marker buffer."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from .events import MarkerRecord


logger = logging.getLogger(__name__)


@dataclass
class EventBuffer:
    """
    Ordered buffer of markers waiting to be flushed.

    Append and drain share a single lock, so a drain returns an exact
    snapshot: records appended concurrently land either in the snapshot
    or in the buffer afterwards, never both.

    When max_size is reached the oldest record is dropped to make room.
    A max_size of 0 leaves the buffer unbounded.
    """
    max_size: int = 10000

    # Internal state
    _records: deque[MarkerRecord] = field(default_factory=deque, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _dropped: int = field(default=0, init=False)
    _overflowing: bool = field(default=False, init=False)

    def __post_init__(self):
        if self.max_size < 0:
            raise ValueError("max_size must be >= 0")
        self._records = deque(maxlen=self.max_size or None)

    def append(self, record: MarkerRecord) -> int:
        """
        Add a record to the tail of the buffer.

        Returns the buffer size observed right after the append.
        """
        with self._lock:
            if self.max_size and len(self._records) >= self.max_size:
                self._dropped += 1
                if not self._overflowing:
                    self._overflowing = True
                    logger.warning(
                        f"Marker buffer full ({self.max_size}), dropping oldest markers"
                    )
            self._records.append(record)
            return len(self._records)

    def drain_all(self) -> list[MarkerRecord]:
        """Atomically remove and return every buffered record, oldest first."""
        with self._lock:
            if not self._records:
                return []
            batch = list(self._records)
            self._records.clear()
            self._overflowing = False
            return batch

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def dropped(self) -> int:
        """Records discarded because the buffer was full."""
        return self._dropped

    def __len__(self) -> int:
        return self.size
