"""
Proxy API router.

Raw access to the Rossby data server for the metadata-driven frontend:

    GET /proxy/metadata   → backend /metadata, buffered passthrough
    GET /proxy/data       → backend /data, streamed chunk by chunk
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from api.schemas import ErrorResponse
from api.state import get_proxy
from src.proxy import StreamingProxy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proxy", tags=["Proxy"])

_ERROR_RESPONSES = {502: {"model": ErrorResponse, "description": "Backend unreachable or failing"}}


@router.get("/metadata", responses=_ERROR_RESPONSES)
async def proxy_metadata(proxy: StreamingProxy = Depends(get_proxy)):
    """Backend dataset metadata (coordinates, dimensions, variables), unchanged."""
    body = await proxy.fetch_metadata()
    return Response(content=body.content, media_type=body.media_type)


@router.get("/data", responses=_ERROR_RESPONSES)
async def proxy_data(request: Request, proxy: StreamingProxy = Depends(get_proxy)):
    """
    Backend data query, relayed as a live chunked stream.

    Query parameters:
        vars: comma-separated variable names
        time: time code (hours since 1900-01-01)
        time_range: time range expression understood by the backend
        any other parameter (``level``, ...) is forwarded verbatim;
        ``format`` is always sent as ``json``.

    Backend failures are reported before streaming starts, so a client never
    receives a partial body with a success status. A client that goes away
    mid-stream closes the backend response.
    """
    stream = await proxy.open_data_stream(request.query_params.multi_items())
    return StreamingResponse(
        stream.relay(request.is_disconnected),
        media_type=stream.media_type,
        background=BackgroundTask(stream.aclose),
    )
