"""Shared test fixtures for marker client tests."""

from __future__ import annotations

import threading
from typing import Any

import pytest

from marker_client.config import Config
from marker_client.markers.errors import ConfigurationError, TransportError
from marker_client.runtime import MarkerRuntime
from marker_client.transport.base import MarkerTransport


class RecordingTransport(MarkerTransport):
    """Transport that keeps every envelope it is asked to send."""

    def __init__(self, api_key: str | None = "test-key", fail: bool = False):
        self.api_key = api_key
        self.fail = fail
        self.envelopes: list[dict[str, Any]] = []
        self.attempts = 0
        self.stops = 0
        self._lock = threading.Lock()

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key is not set")

    async def send(self, envelope: dict[str, Any]) -> None:
        with self._lock:
            self.attempts += 1
        if self.fail:
            raise TransportError("collector unavailable", status_code=503)
        with self._lock:
            self.envelopes.append(envelope)

    async def stop(self) -> None:
        self.stops += 1

    @property
    def markers(self) -> list[dict[str, Any]]:
        with self._lock:
            return [m for envelope in self.envelopes for m in envelope["markers"]]


# =============================================================================
# Transport Fixtures
# =============================================================================

@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def failing_transport() -> RecordingTransport:
    return RecordingTransport(fail=True)


@pytest.fixture
def unconfigured_transport() -> RecordingTransport:
    return RecordingTransport(api_key=None)


# =============================================================================
# Runtime Fixtures
# =============================================================================

@pytest.fixture
def config() -> Config:
    """Default test configuration."""
    config = Config()
    config.api.api_key = "test-key"
    return config


@pytest.fixture
def runtime(config, transport):
    """Runtime wired to the recording transport."""
    runtime = MarkerRuntime.create(config, transport=transport)
    yield runtime
    runtime.shutdown()
