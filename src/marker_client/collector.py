"""FastAPI application - development markers collector.

Accepts the same envelope the HTTP transport sends and keeps received
markers in memory. Intended for local development and integration
tests, not production ingestion.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel

from .markers.envelope import MarkerPayload, MarkersEnvelope


logger = logging.getLogger(__name__)


# Response models
class ReceiveResponse(BaseModel):
    """Response from POST /sdk/v1/markers."""
    received: int
    total: int


class MarkersListResponse(BaseModel):
    count: int
    markers: list[dict[str, Any]]


class SdkVersionResponse(BaseModel):
    version: str


class HealthResponse(BaseModel):
    status: str
    markers: int


@dataclass
class MarkerStore:
    """In-memory store of received markers, in arrival order."""
    _markers: list[MarkerPayload] = field(default_factory=list, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def extend(self, markers: list[MarkerPayload]) -> int:
        with self._lock:
            self._markers.extend(markers)
            return len(self._markers)

    def all(self) -> list[MarkerPayload]:
        with self._lock:
            return list(self._markers)

    def clear(self) -> None:
        with self._lock:
            self._markers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._markers)


def create_app(api_key: str | None = None, sdk_version: str = "0.8.1") -> FastAPI:
    """
    Build the collector app.

    Args:
        api_key: If set, the authorization header must match it.
            Otherwise any non-empty authorization header is accepted.
        sdk_version: Version reported by the SDK version endpoint.
    """
    app = FastAPI(
        title="Markers Collector",
        description="Development collector for batched marker telemetry",
        version="0.1.0",
    )
    store = MarkerStore()
    app.state.store = store

    def check_auth(authorization: str | None) -> None:
        if not authorization:
            raise HTTPException(status_code=401, detail="Missing authorization header")
        if api_key is not None and authorization != api_key:
            raise HTTPException(status_code=403, detail="Invalid API key")

    @app.post("/sdk/v1/markers", response_model=ReceiveResponse)
    async def receive_markers(
        envelope: MarkersEnvelope,
        authorization: str | None = Header(default=None),
    ):
        """Receive one batch of markers."""
        check_auth(authorization)
        total = store.extend(envelope.markers)
        logger.info(f"Received {len(envelope.markers)} markers (total={total})")
        return ReceiveResponse(received=len(envelope.markers), total=total)

    @app.get("/sdk/v1/markers", response_model=MarkersListResponse)
    async def list_markers():
        """List every marker received so far."""
        markers = store.all()
        return MarkersListResponse(
            count=len(markers),
            markers=[m.model_dump(by_alias=True) for m in markers],
        )

    @app.post("/sdk/v1/sdk/version", response_model=SdkVersionResponse)
    async def get_sdk_version(authorization: str | None = Header(default=None)):
        check_auth(authorization)
        return SdkVersionResponse(version=sdk_version)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(status="healthy", markers=len(store))

    return app


def run(host: str = "127.0.0.1", port: int = 8060, api_key: str | None = None) -> None:
    """Run the collector with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(create_app(api_key=api_key), host=host, port=port)
