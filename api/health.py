"""
Health checks for the Rossby-Vis gateway.

Liveness says the process is up, how much host memory is left and which
backend it points at; it never calls the backend.
Readiness additionally probes the backend metadata endpoint.
"""
import logging
import time
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from enum import Enum
from dataclasses import dataclass, asdict

from api.config import API_VERSION
from api.state import GatewayContext
from api.system_metrics import memory_snapshot
from src.errors import GatewayError

logger = logging.getLogger(__name__)

_STARTED_MONOTONIC = time.monotonic()


class HealthStatus(Enum):
    """Health check status."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""
    name: str
    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return {k: v for k, v in payload.items() if v is not None}


def uptime_seconds() -> float:
    return round(time.monotonic() - _STARTED_MONOTONIC, 3)


def build_liveness_payload(gateway: GatewayContext) -> Dict[str, Any]:
    """Static liveness information; never touches the backend."""
    return {
        "status": HealthStatus.HEALTHY.value,
        "timestamp": int(datetime.now(timezone.utc).timestamp()),
        "service": gateway.settings.service_name,
        "version": API_VERSION,
        "uptime_seconds": uptime_seconds(),
        "memory": memory_snapshot(),
        "backend": {
            "url": gateway.api_url,
            "status": "configured",
        },
    }


async def check_backend_health(gateway: GatewayContext) -> ComponentHealth:
    """
    Check that the backend answers its metadata endpoint.

    Returns:
        ComponentHealth with backend status
    """
    start = time.perf_counter()
    try:
        await gateway.proxy.fetch_metadata()
    except GatewayError as e:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.warning(f"Backend health check failed: {e}")
        return ComponentHealth(
            name="backend",
            status=HealthStatus.UNHEALTHY,
            latency_ms=round(latency_ms, 2),
            message=f"{e.kind}: {e.message}",
        )

    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(
        name="backend",
        status=HealthStatus.HEALTHY,
        latency_ms=round(latency_ms, 2),
        message="Backend metadata reachable",
    )


async def perform_full_health_check(gateway: GatewayContext) -> Dict[str, Any]:
    """Readiness: liveness payload plus a live backend probe."""
    backend = await check_backend_health(gateway)
    payload = build_liveness_payload(gateway)
    payload["status"] = backend.status.value
    payload["components"] = {"backend": backend.to_dict()}
    return payload
