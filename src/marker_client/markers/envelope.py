"""Wire models for the markers envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .events import MarkerRecord


class MarkerProperties(BaseModel):
    """Static context block of a marker on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    sdk_platform: str = Field(alias="sdkPlatform")
    place_id: int = Field(alias="placeId")
    place_version: int = Field(alias="placeVersion")
    origin: str


class MarkerPayload(BaseModel):
    """One marker as the collector receives it."""
    model_config = ConfigDict(populate_by_name=True)

    marker_id: str = Field(alias="markerId")
    timestamp: int
    type: str
    server_id: str = Field(alias="serverId")
    value: dict[str, Any] | list[Any] | None = None
    properties: MarkerProperties


class MarkersEnvelope(BaseModel):
    """Batch wrapper: {"markers": [...]}."""
    markers: list[MarkerPayload] = Field(default_factory=list)

    @classmethod
    def from_records(cls, records: list[MarkerRecord]) -> MarkersEnvelope:
        return cls.model_validate({"markers": [r.to_dict() for r in records]})

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
