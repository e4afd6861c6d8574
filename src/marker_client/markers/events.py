"""Marker event types and construction."""

from __future__ import annotations

import dataclasses
import numbers
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from .errors import (
    EmptyNameError,
    InvalidNameError,
    InvalidPayloadShapeError,
    PayloadConversionError,
)


# JSON scalars that may appear inside a payload but never as the payload itself
_JSON_SCALARS = (str, int, float, bool, type(None))


def is_scalar(value: Any) -> bool:
    """True for bare primitives: numbers, booleans, decimals, strings, bytes."""
    return isinstance(value, (numbers.Number, str, bytes, bytearray))


def normalize_value(value: Any) -> dict[str, Any] | list[Any] | None:
    """
    Normalize a marker payload into a JSON-ready composite.

    Accepted shapes:
    - None
    - Mappings (keys are stringified)
    - Lists, tuples, sets and frozensets
    - Dataclass instances
    - Pydantic models
    - Objects exposing a ``to_dict()`` method

    Raises:
        InvalidPayloadShapeError: If the value is a scalar or has no
            structured representation.
        PayloadConversionError: If conversion fails, e.g. a reference
            cycle or a to_dict() that raises.
    """
    if value is None:
        return None
    if is_scalar(value):
        raise InvalidPayloadShapeError(type(value))

    try:
        normalized = _normalize_composite(value)
    except RecursionError as e:
        raise PayloadConversionError(type(value), "nesting too deep or self-referencing") from e
    except Exception as e:
        raise PayloadConversionError(type(value), str(e)) from e

    if normalized is None:
        raise InvalidPayloadShapeError(type(value))
    return normalized


def _normalize_composite(value: Any) -> dict[str, Any] | list[Any] | None:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _normalize_nested(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(k): _normalize_nested(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_normalize_nested(v) for v in value]
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        result = to_dict()
        if isinstance(result, Mapping):
            return _normalize_nested(result)
    return None


def _normalize_nested(value: Any) -> Any:
    if isinstance(value, _JSON_SCALARS):
        return value
    normalized = _normalize_composite(value)
    if normalized is not None:
        return normalized
    # Decimals, datetimes and the like travel as their string form
    return str(value)


@dataclass(frozen=True, slots=True)
class MarkerContext:
    """Static metadata attached to every marker of a process lifetime."""
    sdk_platform: str = "roblox"
    place_id: int = 1
    place_version: int = 1
    origin: str = "sdk"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sdkPlatform": self.sdk_platform,
            "placeId": self.place_id,
            "placeVersion": self.place_version,
            "origin": self.origin,
        }


@dataclass(frozen=True, slots=True)
class MarkerRecord:
    """
    A single marker event.

    Records are immutable once created. The buffer owns them until they
    are drained into a batch.
    """
    # Identity
    marker_id: str

    # Milliseconds since epoch (UTC)
    timestamp: int

    # Event type
    name: str

    # Emitting process
    server_id: str

    # Normalized payload (dict, list or None)
    value: Any

    context: MarkerContext

    @classmethod
    def create(
        cls,
        name: str | None,
        value: Any,
        server_id: str,
        context: MarkerContext,
    ) -> MarkerRecord:
        """
        Validate and build a marker.

        Raises:
            EmptyNameError: If name is None, empty or whitespace.
            InvalidNameError: If name is not a string.
            InvalidPayloadShapeError: If value is a bare primitive.
        """
        if name is None or (isinstance(name, str) and not name.strip()):
            raise EmptyNameError("markerName missing, will not send")
        if not isinstance(name, str):
            raise InvalidNameError(type(name))

        return cls(
            marker_id=uuid.uuid4().hex,
            timestamp=time.time_ns() // 1_000_000,
            name=name,
            server_id=server_id,
            value=normalize_value(value),
            context=context,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the collector's wire format."""
        return {
            "markerId": self.marker_id,
            "timestamp": self.timestamp,
            "type": self.name,
            "serverId": self.server_id,
            "value": self.value,
            "properties": self.context.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class MarkerFactory:
    """Stamps server identity and context onto new markers."""
    server_id: str = "unity-0000"
    context: MarkerContext = dataclasses.field(default_factory=MarkerContext)

    def create(self, name: str | None, value: Any) -> MarkerRecord:
        return MarkerRecord.create(name, value, server_id=self.server_id, context=self.context)
