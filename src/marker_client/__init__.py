"""
Marker Client Library

Buffers named marker events in memory and delivers them to the collector
in batches, either when enough markers are waiting or when they have
waited long enough.

Usage:
    from marker_client import init

    runtime = init(api_key="...")
    runtime.markers.send_marker("level_complete", {"level": 3})

    # Every frame (or use runtime.run_clock() under asyncio)
    runtime.tick(delta_seconds)

    # Once, before exit (also registered with atexit by init)
    runtime.shutdown()
"""

from .config import Config, ApiConfig, MarkersConfig, ContextConfig, TransportConfig
from .markers import (
    MarkerError,
    ValidationError,
    EmptyNameError,
    InvalidNameError,
    InvalidPayloadShapeError,
    PayloadConversionError,
    ConfigurationError,
    TransportError,
    MarkerContext,
    MarkerRecord,
    MarkersEnvelope,
    MarkersService,
)
from .runtime import MarkerRuntime, init

__version__ = "0.1.0"

__all__ = [
    # Runtime
    "MarkerRuntime",
    "MarkersService",
    "init",
    # Configuration
    "Config",
    "ApiConfig",
    "MarkersConfig",
    "ContextConfig",
    "TransportConfig",
    # Data types
    "MarkerContext",
    "MarkerRecord",
    "MarkersEnvelope",
    # Exceptions
    "MarkerError",
    "ValidationError",
    "EmptyNameError",
    "InvalidNameError",
    "InvalidPayloadShapeError",
    "PayloadConversionError",
    "ConfigurationError",
    "TransportError",
]
