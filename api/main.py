"""
FastAPI application for the Rossby-Vis gateway.

Sits between the earth visualization frontend and a Rossby data server:
- Proxies backend metadata and streams backend data queries
- Synthesizes the frontend's GRIB2-like records from whatever variables the
  backend exposes
- Serves the static frontend

License: MIT
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api.config import API_VERSION, Settings, get_settings
from api.middleware import get_request_id, setup_middleware, structured_logger
from api.routers import earth, proxy, system
from api.schemas import ErrorResponse
from api.state import GatewayContext, build_http_client
from api.system_metrics import run_metrics_logger
from src.errors import BackendStatusError, GatewayError

logger = logging.getLogger(__name__)

_LOG_FORMATS = {
    # JSON logs are self-contained
    "json": "%(message)s",
    "text": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    "compact": "%(levelname)s %(message)s",
}


def configure_logging(settings: Settings) -> None:
    """Configure root logging and the structured logger from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=_LOG_FORMATS[settings.log_format],
    )
    structured_logger.configure(
        service=settings.service_name,
        json_output=settings.log_format == "json",
    )


async def gateway_error_handler(request: Request, exc: GatewayError):
    """Map gateway errors to one JSON error body and an HTTP status."""
    request_id = get_request_id()
    structured_logger.error(
        "Gateway request failed",
        error=exc.message,
        error_type=type(exc).__name__,
        backend_url=exc.backend_url,
        path=request.url.path,
    )
    body = ErrorResponse(
        error=exc.kind,
        detail=exc.message,
        request_id=request_id,
        backend_status=exc.status_code if isinstance(exc, BackendStatusError) else None,
    )
    return JSONResponse(status_code=exc.http_status, content=body.model_dump(exclude_none=True))


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Application factory for the Rossby-Vis gateway.

    Args:
        settings: explicit settings; environment/.env settings when None
        transport: optional httpx transport for the backend client (tests
            pass an ``httpx.MockTransport``)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        client = build_http_client(settings, transport)
        application.state.gateway = GatewayContext(settings=settings, client=client)
        logger.info(f"{settings.service_name} {API_VERSION} starting")
        logger.info(f"Backend: {settings.api_url}")
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"System metrics: {settings.enable_metrics}")

        metrics_task = None
        if settings.enable_metrics:
            metrics_task = asyncio.create_task(run_metrics_logger(settings.metrics_interval_seconds))
        application.state.metrics_task = metrics_task
        try:
            yield
        finally:
            if metrics_task is not None:
                metrics_task.cancel()
                with suppress(asyncio.CancelledError):
                    await metrics_task
            await client.aclose()
            logger.info(f"{settings.service_name} stopped")

    application = FastAPI(
        title="Rossby-Vis Gateway",
        description="""
## Rossby-Vis Gateway

Backend-for-frontend between the earth visualization client and a Rossby
gridded-data server.

### Features
- Metadata passthrough and streamed data proxy
- Dynamic variable discovery, categorization and U/V pair detection
- Synthesis of earth-frontend GRIB2-like JSON records
- Request metrics (Prometheus and JSON) and host resource monitoring
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # Security headers, request IDs, logging, error sanitization
    setup_middleware(
        application,
        debug=settings.is_development,
        enable_hsts=settings.enable_hsts,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    application.add_exception_handler(GatewayError, gateway_error_handler)

    application.include_router(system.router)
    application.include_router(proxy.router)
    application.include_router(earth.router)

    # Static frontend last so API routes take precedence
    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            application.mount("/", StaticFiles(directory=static_path, html=True), name="static")
            logger.info(f"Serving static frontend from {static_path.resolve()}")
        else:
            logger.warning(f"Static directory not found, frontend not served: {static_path}")

    return application


# Create the application
app = create_app()


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    _settings = get_settings()
    uvicorn.run(
        app,
        host=_settings.api_host,
        port=_settings.api_port,
        log_level=_settings.log_level,
    )
