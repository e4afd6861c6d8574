"""File-based transport for markers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .base import MarkerTransport


@dataclass
class FileTransport(MarkerTransport):
    """
    Transport that appends envelopes to a file (JSONL format).

    Each flushed batch is written as a single JSON line.
    """
    path: str = "markers.jsonl"
    encoding: str = "utf-8"

    # Internal state
    _file: object = field(default=None, init=False)

    async def start(self) -> None:
        # Ensure directory exists
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding=self.encoding)

    async def stop(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    async def send(self, envelope: dict[str, Any]) -> None:
        if not self._file:
            await self.start()

        self._file.write(json.dumps(envelope, default=str) + "\n")
        self._file.flush()


def read_envelopes(path: str, encoding: str = "utf-8") -> list[dict[str, Any]]:
    """Read back every envelope written by a FileTransport."""
    with open(path, "r", encoding=encoding) as f:
        return [json.loads(line) for line in f if line.strip()]
