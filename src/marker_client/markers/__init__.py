"""Marker pipeline - buffered, batched event delivery."""

from .errors import (
    MarkerError,
    ValidationError,
    EmptyNameError,
    InvalidNameError,
    InvalidPayloadShapeError,
    PayloadConversionError,
    ConfigurationError,
    TransportError,
)
from .events import MarkerContext, MarkerRecord, MarkerFactory
from .buffer import EventBuffer
from .envelope import MarkersEnvelope, MarkerPayload, MarkerProperties
from .dispatcher import Dispatcher
from .policy import FlushPolicy
from .service import MarkersService

__all__ = [
    "MarkerError",
    "ValidationError",
    "EmptyNameError",
    "InvalidNameError",
    "InvalidPayloadShapeError",
    "PayloadConversionError",
    "ConfigurationError",
    "TransportError",
    "MarkerContext",
    "MarkerRecord",
    "MarkerFactory",
    "EventBuffer",
    "MarkersEnvelope",
    "MarkerPayload",
    "MarkerProperties",
    "Dispatcher",
    "FlushPolicy",
    "MarkersService",
]
