"""
Request-independent state of the gateway.

The only thing handlers share is a read-only context: the settings and one
pooled HTTP client for the backend. It is built once in the application
lifespan and never mutated afterwards, so it needs no locking.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from api.config import Settings
from src.proxy import StreamingProxy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayContext:
    """Backend URL plus reusable HTTP client, shared by all requests."""
    settings: Settings
    client: httpx.AsyncClient

    @property
    def api_url(self) -> str:
        return self.settings.api_url

    @property
    def proxy(self) -> StreamingProxy:
        return StreamingProxy(self.client, self.settings.api_url, self.settings.stream_chunk_size)


def build_http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the backend client; timeouts default to httpx's own."""
    kwargs = {}
    if settings.backend_timeout is not None:
        kwargs["timeout"] = settings.backend_timeout
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


def get_gateway(request: Request) -> GatewayContext:
    """FastAPI dependency returning the context stored on app.state."""
    return request.app.state.gateway


def get_proxy(request: Request) -> StreamingProxy:
    return get_gateway(request).proxy
