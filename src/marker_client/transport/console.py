"""Console transport for development/debugging."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import Any

from .base import MarkerTransport


@dataclass
class ConsoleTransport(MarkerTransport):
    """
    Transport that writes envelopes to console (stdout/stderr).

    Useful for development and debugging.
    """
    # Output destination
    stream: str = "stdout"  # stdout | stderr

    # Output format
    format: str = "json"  # json | compact | pretty

    # Prefix for each line
    prefix: str = "[MARKERS] "

    async def send(self, envelope: dict[str, Any]) -> None:
        out = sys.stdout if self.stream == "stdout" else sys.stderr

        if self.format == "compact":
            for marker in envelope.get("markers", []):
                print(f"{self.prefix}{self._format_compact(marker)}", file=out)
        elif self.format == "pretty":
            print(f"{self.prefix}{json.dumps(envelope, indent=2, default=str)}", file=out)
        else:
            print(f"{self.prefix}{json.dumps(envelope, default=str)}", file=out)

    def _format_compact(self, marker: dict[str, Any]) -> str:
        return (
            f"{marker['timestamp']} "
            f"{marker['serverId']} "
            f"{marker['type']} "
            f"{marker['markerId']} "
            f"{json.dumps(marker['value'], default=str)}"
        )
