"""
Earth frontend data router.

Serves the frontend's historical file layout from live backend data:

    GET /data/weather/current/current-{variable}-surface-level-gfs-1.0.json

``variable`` is any backend variable (``t2m``, ``u10``, ...) or one of the
legacy names ``wind`` and ``temp``.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.earth_service import build_earth_records
from api.schemas import EarthRecord, ErrorResponse
from api.state import get_proxy
from src.proxy import StreamingProxy

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Earth"])

# Consumed here rather than forwarded to the backend /data call
_OWN_PARAMS = {"time", "vars", "format"}


@router.get(
    "/data/weather/current/current-{variable}-surface-level-gfs-1.0.json",
    response_model=List[EarthRecord],
    responses={
        404: {"model": ErrorResponse, "description": "Variable not in backend metadata"},
        502: {"model": ErrorResponse, "description": "Backend unreachable, failing or incomplete"},
    },
)
async def earth_current_data(
    variable: str,
    request: Request,
    time: Optional[float] = Query(None, description="Hours since 1900-01-01; first backend time if omitted"),
    proxy: StreamingProxy = Depends(get_proxy),
):
    """Frontend records for one variable: one for a scalar, U and V for a vector."""
    extra = [(k, v) for k, v in request.query_params.multi_items() if k not in _OWN_PARAMS]
    records = await build_earth_records(proxy, variable, time, extra)
    # Returned as-is: records are already in wire format and can be large
    return JSONResponse(content=records)
