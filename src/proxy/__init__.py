"""Backend HTTP access: buffered passthrough and live streaming."""

from .streaming import (
    BackendStream,
    ProxiedBody,
    StreamingProxy,
    build_data_query,
)

__all__ = [
    'BackendStream',
    'ProxiedBody',
    'StreamingProxy',
    'build_data_query',
]
