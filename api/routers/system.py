"""
System / health / metrics API router.

Handles liveness and readiness checks, Prometheus metrics and the service
info endpoint.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from api.config import API_VERSION
from api.health import build_liveness_payload, perform_full_health_check
from api.middleware import get_request_id, metrics_collector
from api.state import GatewayContext, get_gateway
from api.system_metrics import memory_snapshot

router = APIRouter(tags=["System"])

logger = logging.getLogger(__name__)


@router.get("/api")
async def service_info(gateway: GatewayContext = Depends(get_gateway)):
    """
    Service info endpoint.

    Returns basic gateway information and available endpoint categories.
    """
    return {
        "name": gateway.settings.service_name,
        "version": API_VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "backend": gateway.api_url,
        "endpoints": {
            "health": "/health",
            "readiness": "/api/health",
            "metrics": "/api/metrics",
            "metadata": "/proxy/metadata",
            "data": "/proxy/data",
            "earth": "/data/weather/current/current-{variable}-surface-level-gfs-1.0.json",
        },
    }


@router.get("/health")
@router.get("/healthz")
async def liveness_check(gateway: GatewayContext = Depends(get_gateway)):
    """Liveness probe: process up, backend configured. Never calls the backend."""
    return build_liveness_payload(gateway)


@router.get("/api/health")
async def readiness_check(gateway: GatewayContext = Depends(get_gateway)):
    """
    Readiness probe.

    Calls the backend metadata endpoint and reports:
        - status: healthy/unhealthy
        - components.backend: latency and error detail
    Always answers 200 so the body can be inspected.
    """
    result = await perform_full_health_check(gateway)
    result["request_id"] = get_request_id()
    return result


@router.get("/api/metrics", response_class=PlainTextResponse)
async def get_metrics():
    """
    Prometheus-compatible metrics endpoint.

    Request counts by endpoint and status, duration summaries, 5xx counts
    and service uptime.
    """
    return metrics_collector.get_prometheus_metrics()


@router.get("/api/metrics/json")
async def get_metrics_json():
    """Request metrics plus host memory, as JSON for custom dashboards."""
    payload = metrics_collector.get_metrics()
    payload["memory"] = memory_snapshot()
    return payload
