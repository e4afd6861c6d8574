"""Configuration for the marker client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ApiConfig:
    """
    Collector API configuration.

    Can be set via:
    - Constructor arguments
    - Environment variables (MARKERS_*)
    - Config file
    """
    # Required before any outbound call
    api_key: str | None = field(
        default_factory=lambda: os.environ.get("MARKERS_API_KEY")
    )

    base_url: str = field(
        default_factory=lambda: os.environ.get("MARKERS_BASE_URL", "https://api.gamebeast.gg")
    )

    # Identity headers
    sdk_version: str = "0.8.1"
    universe_id: str = "0"
    is_studio: bool = True

    # Request timeout (seconds)
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("MARKERS_TIMEOUT", "30"))
    )


@dataclass
class MarkersConfig:
    """Batching configuration."""
    # Flush once this many markers are buffered
    batch_size: int = 10

    # Flush buffered markers after this long
    flush_interval_seconds: float = 10.0

    # Oldest markers are dropped beyond this (0 = unbounded)
    max_buffer_size: int = 10000

    # How long shutdown waits for in-flight batches
    shutdown_timeout_seconds: float = 5.0


@dataclass
class ContextConfig:
    """Static metadata stamped on every marker."""
    server_id: str = "unity-0000"
    sdk_platform: str = "roblox"
    place_id: int = 1
    place_version: int = 1
    origin: str = "sdk"


@dataclass
class TransportConfig:
    """Where batches are delivered."""
    type: str = "http"  # http | console | file | zmq
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """Main configuration container."""
    api: ApiConfig = field(default_factory=ApiConfig)
    markers: MarkersConfig = field(default_factory=MarkersConfig)
    context: ContextConfig = field(default_factory=ContextConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            api=ApiConfig(**data.get("api", {})),
            markers=MarkersConfig(**data.get("markers", {})),
            context=ContextConfig(**data.get("context", {})),
            transport=TransportConfig(**data.get("transport", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
