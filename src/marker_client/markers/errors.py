"""Marker pipeline exceptions."""

from __future__ import annotations


class MarkerError(Exception):
    """Base exception for marker pipeline errors."""
    pass


class ValidationError(MarkerError):
    """Marker could not be created from the supplied name and value."""
    pass


class EmptyNameError(ValidationError):
    """Marker name is missing or blank."""
    pass


class InvalidNameError(ValidationError):
    """Marker name is not a string."""

    def __init__(self, name_type: type):
        super().__init__(f"markerName must be a string, got '{name_type.__name__}'")
        self.name_type = name_type


class InvalidPayloadShapeError(ValidationError):
    """Marker value is a scalar instead of an object-like payload."""

    def __init__(self, value_type: type):
        super().__init__(
            f"'{value_type.__name__}' is a primitive; markers must use object-like payload types"
        )
        self.value_type = value_type


class PayloadConversionError(ValidationError):
    """Marker value could not be converted to a JSON-ready structure."""

    def __init__(self, value_type: type, reason: str):
        super().__init__(f"'{value_type.__name__}' payload could not be converted: {reason}")
        self.value_type = value_type


class ConfigurationError(MarkerError):
    """Dispatch attempted before the client was configured."""
    pass


class TransportError(MarkerError):
    """Outbound call to the collector failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return super().__str__()
        return f"HTTP {self.status_code}: {super().__str__()}"
