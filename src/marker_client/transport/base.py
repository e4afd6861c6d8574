"""Base transport interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class MarkerTransport(ABC):
    """
    Abstract base class for marker transports.

    Transports receive one envelope per flush and deliver it to a
    destination (collector API, file, message queue, etc.).
    """

    @abstractmethod
    async def send(self, envelope: dict[str, Any]) -> Any:
        """
        Send one envelope of markers.

        Raises:
            TransportError: If delivery failed.
        """
        ...

    def ensure_configured(self) -> None:
        """
        Check the transport can be used before a batch is drained.

        Raises:
            ConfigurationError: If required settings are missing.
        """
        pass

    async def start(self) -> None:
        """Initialize the transport (called on startup)."""
        pass

    async def stop(self) -> None:
        """Clean up the transport (called on shutdown)."""
        pass

    async def health_check(self) -> bool:
        """Check if the transport is healthy."""
        return True
