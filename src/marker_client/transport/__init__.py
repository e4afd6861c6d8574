"""Marker transports - destinations for flushed batches."""

from __future__ import annotations

from ..config import Config
from .base import MarkerTransport
from .console import ConsoleTransport
from .file import FileTransport
from .http import HttpTransport, RequestType
from .zmq import ZmqTransport

__all__ = [
    "MarkerTransport",
    "ConsoleTransport",
    "FileTransport",
    "HttpTransport",
    "RequestType",
    "ZmqTransport",
    "create_transport",
]


def create_transport(config: Config) -> MarkerTransport:
    """Build the transport named by config.transport.type."""
    transport_type = config.transport.type
    options = config.transport.options

    if transport_type == "http":
        return HttpTransport(
            api_key=config.api.api_key,
            base_url=config.api.base_url,
            sdk_version=config.api.sdk_version,
            universe_id=config.api.universe_id,
            server_id=config.context.server_id,
            is_studio=config.api.is_studio,
            timeout=config.api.timeout,
            **options,
        )
    elif transport_type == "console":
        return ConsoleTransport(**options)
    elif transport_type == "file":
        return FileTransport(**options)
    elif transport_type == "zmq":
        return ZmqTransport(**options)
    raise ValueError(f"Unknown transport type: {transport_type}")
