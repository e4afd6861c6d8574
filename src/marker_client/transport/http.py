"""HTTP transport for the markers collector API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from ..markers.errors import ConfigurationError, TransportError
from .base import MarkerTransport


logger = logging.getLogger(__name__)


class RequestType(str, Enum):
    """Collector API calls known to the client."""
    GET_SDK_VERSION = "get_sdk_version"
    POST_MARKER = "post_marker"


# request type -> (method, path). Paths are relative to the /sdk prefix.
REQUEST_ROUTES: dict[RequestType, tuple[str, str]] = {
    RequestType.GET_SDK_VERSION: ("POST", "/v1/sdk/version"),
    RequestType.POST_MARKER: ("POST", "/v1/markers"),
}

SDK_PREFIX = "/sdk"


@dataclass
class HttpTransport(MarkerTransport):
    """
    Transport that POSTs envelopes to the collector API.

    A fresh httpx.AsyncClient is opened per call, so the transport can
    be used from any event loop.

    Usage:
        transport = HttpTransport(api_key="...", base_url="https://api.example.com")
        await transport.send({"markers": [...]})
    """
    api_key: str | None = None
    base_url: str = "https://api.gamebeast.gg"

    # Identity headers
    sdk_version: str = "0.8.1"
    universe_id: str = "0"
    server_id: str = "unity-0000"
    is_studio: bool = True

    # Request timeout (seconds)
    timeout: float = 30.0

    # Optional httpx transport (MockTransport, ASGITransport) for testing
    http_transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    def ensure_configured(self) -> None:
        if not self.api_key:
            raise ConfigurationError("API key is not set. Configure api.api_key before sending markers.")

    async def send(self, envelope: dict[str, Any]) -> Any:
        return await self.request(RequestType.POST_MARKER, envelope)

    async def get_sdk_version(self) -> Any:
        """Ask the collector which SDK version it expects."""
        return await self.request(RequestType.GET_SDK_VERSION)

    async def request(self, request_type: RequestType, body: dict[str, Any] | None = None) -> Any:
        """
        Issue one collector API call.

        Returns:
            Decoded JSON response body, or None for an empty body.

        Raises:
            ConfigurationError: If no API key is configured.
            TransportError: On connection failure or non-2xx status.
        """
        self.ensure_configured()

        if request_type not in REQUEST_ROUTES:
            raise ValueError(f"Unsupported request type: {request_type}")
        method, path = REQUEST_ROUTES[request_type]
        url = self._build_url(SDK_PREFIX + path)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.http_transport) as client:
            try:
                if method == "GET":
                    response = await client.get(url, params=body, headers=self._get_headers())
                else:
                    # Null bodies go out as an empty JSON object
                    response = await client.post(
                        url,
                        json=body if body is not None else {},
                        headers=self._get_headers(),
                    )
            except httpx.HTTPError as e:
                logger.error(f"{method} {url} failed: {e}")
                raise TransportError(f"{method} {url} failed: {e}") from e

        if response.is_error:
            logger.error(f"HTTP {response.status_code} for {url}\nBody: {response.text}")
            raise TransportError(response.text or response.reason_phrase, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response from {url}: {e}", status_code=response.status_code) from e

    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url.rstrip("/") + path

    def _get_headers(self) -> dict[str, str]:
        return {
            "authorization": self.api_key or "",
            "sdkversion": self.sdk_version,
            "universeid": self.universe_id,
            "serverid": self.server_id,
            "isstudio": "true" if self.is_studio else "false",
            "Accept": "application/json",
        }
