"""
Middleware for the Rossby-Vis gateway.

Provides:
- Security headers (CSP, XSS protection, etc.)
- Request ID tracking for distributed tracing
- Structured logging with correlation IDs
- Error response logging
- Error handling and sanitization
- Request metrics (counts, durations, errors)
"""
import time
import uuid
import logging
import json
import re
from typing import Callable, Dict, Optional, Tuple
from contextvars import ContextVar
from datetime import datetime, timezone

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from fastapi import FastAPI

# Context variable for request ID (task-local)
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Checked in order; the first non-empty value becomes the request ID
REQUEST_ID_HEADERS = ("x-request-id", "x-correlation-id", "x-trace-id")
REMOTE_ADDR_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")

# Paths to exclude from request logging and metrics (probes, scrapes)
EXCLUDED_PATHS = {"/health", "/healthz", "/api/health", "/api/metrics", "/api/metrics/json"}


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def extract_or_generate_request_id(headers: Headers) -> str:
    for name in REQUEST_ID_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return generate_request_id()


def extract_remote_addr(request: Request) -> str:
    """Client address, preferring proxy headers over the socket peer."""
    for name in REMOTE_ADDR_HEADERS:
        value = request.headers.get(name)
        if value:
            if name == "x-forwarded-for":
                return value.split(",")[0].strip()
            return value
    return request.client.host if request.client else "unknown"


class StructuredLogger:
    """
    Structured logger for the web layer.

    In ``json`` mode every entry is one JSON object with consistent fields
    for log aggregation systems; otherwise fields are appended as key=value.
    """

    def __init__(self, name: str, service: str = "rossby-vis"):
        self.logger = logging.getLogger(name)
        self.service = service
        self.json_output = False

    def configure(self, service: str, json_output: bool):
        self.service = service
        self.json_output = json_output

    def _log(self, level: str, message: str, **kwargs):
        """Internal log method with structured output."""
        fields = {"request_id": get_request_id(), **kwargs}
        # Remove None values
        fields = {k: v for k, v in fields.items() if v is not None}

        if self.json_output:
            log_entry = {
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                "level": level,
                "message": message,
                "service": self.service,
                **fields,
            }
            line = json.dumps(log_entry, default=str)
        else:
            line = " ".join([message] + [f"{k}={v}" for k, v in fields.items()])

        getattr(self.logger, level.lower())(line)

    def info(self, message: str, **kwargs):
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log("ERROR", message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._log("DEBUG", message, **kwargs)


# Global structured logger instance
structured_logger = StructuredLogger("rossby_vis")


# Request statistics for Prometheus-style scraping
class MetricsCollector:
    """
    In-memory request statistics for the gateway.

    Collects, per (method, normalized path, status):
    - Request counts
    - Duration sums and counts (a Prometheus summary without quantiles)
    and per (method, normalized path) the count of 5xx responses, which
    covers every failed backend call.
    """

    METRIC_PREFIX = "rossby_vis"

    _UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
    _NUMERIC_RE = re.compile(r"/\d+(?=/|$)")

    def __init__(self):
        self.request_count: Dict[Tuple[str, str, int], int] = {}
        self.request_duration_sum: Dict[Tuple[str, str, int], float] = {}
        self.error_count: Dict[Tuple[str, str], int] = {}
        self._started = time.monotonic()

    @property
    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self._started, 3)

    def record_request(self, method: str, path: str, status_code: int, duration_seconds: float):
        """Record a completed request."""
        normalized_path = self.normalize_path(path)
        key = (method, normalized_path, status_code)

        self.request_count[key] = self.request_count.get(key, 0) + 1
        self.request_duration_sum[key] = self.request_duration_sum.get(key, 0.0) + duration_seconds

        if status_code >= 500:
            error_key = (method, normalized_path)
            self.error_count[error_key] = self.error_count.get(error_key, 0) + 1

    def normalize_path(self, path: str) -> str:
        """Replace UUIDs and numeric path segments with ``{id}``."""
        path = self._UUID_RE.sub("{id}", path)
        return self._NUMERIC_RE.sub("/{id}", path)

    def get_metrics(self) -> dict:
        """Get all metrics as a JSON-friendly dictionary."""
        by_endpoint = {}
        for (method, path, status), count in self.request_count.items():
            total = self.request_duration_sum.get((method, path, status), 0.0)
            by_endpoint[f"{method} {path} {status}"] = {
                "count": count,
                "duration_sum_seconds": round(total, 6),
                "duration_avg_seconds": round(total / count, 6) if count else 0.0,
            }

        return {
            "uptime_seconds": self.uptime_seconds,
            "requests": {
                "total": sum(self.request_count.values()),
                "by_endpoint": by_endpoint,
            },
            "errors": {
                "total": sum(self.error_count.values()),
                "by_endpoint": {f"{m} {p}": c for (m, p), c in self.error_count.items()},
            },
        }

    def get_prometheus_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        p = self.METRIC_PREFIX
        lines = [
            f"# HELP {p}_uptime_seconds Time since service start",
            f"# TYPE {p}_uptime_seconds gauge",
            f"{p}_uptime_seconds {self.uptime_seconds}",
            f"# HELP {p}_requests_total Total request count",
            f"# TYPE {p}_requests_total counter",
        ]
        for (method, path, status), count in self.request_count.items():
            lines.append(f'{p}_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}')

        lines.append(f"# HELP {p}_request_duration_seconds Request duration")
        lines.append(f"# TYPE {p}_request_duration_seconds summary")
        for (method, path, status), total in self.request_duration_sum.items():
            labels = f'method="{method}",path="{path}",status="{status}"'
            lines.append(f"{p}_request_duration_seconds_sum{{{labels}}} {total}")
            lines.append(f"{p}_request_duration_seconds_count{{{labels}}} {self.request_count[(method, path, status)]}")

        lines.append(f"# HELP {p}_errors_total Total 5xx response count")
        lines.append(f"# TYPE {p}_errors_total counter")
        for (method, path), count in self.error_count.items():
            lines.append(f'{p}_errors_total{{method="{method}",path="{path}"}} {count}')

        return "\n".join(lines) + "\n"


# Global metrics collector
metrics_collector = MetricsCollector()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses.

    Headers added:
    - X-Content-Type-Options: Prevents MIME type sniffing
    - X-Frame-Options: Prevents clickjacking
    - X-XSS-Protection: Enables XSS filtering
    - Referrer-Policy: Controls referrer information
    - Content-Security-Policy: Controls resource loading
    - Strict-Transport-Security: Enforces HTTPS (when enabled)
    """

    # The earth frontend relies on inline scripts and styles
    CONTENT_SECURITY_POLICY = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "connect-src 'self' https:"
    )

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = self.CONTENT_SECURITY_POLICY

        # HSTS - only enable in production with HTTPS
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Adds unique request ID to each request for distributed tracing.

    The request ID is:
    - Taken from X-Request-ID, X-Correlation-ID or X-Trace-ID if provided
    - Generated as a UUID4 otherwise
    - Added to response headers for client correlation
    - Available via get_request_id() for logging
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = extract_or_generate_request_id(request.headers)

        # Set in context for access throughout request lifecycle
        token = request_id_ctx.set(request_id)

        try:
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs all requests with timing and metadata.

    Logs include:
    - Method, path, query parameters
    - Response status code
    - Request duration in milliseconds (time to response headers for streams)
    - Client IP address
    - User agent
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip logging for health checks and metrics scrapes
        if request.url.path in EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = extract_remote_addr(request)
        user_agent = request.headers.get("user-agent")

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time
            duration_ms = duration * 1000

            metrics_collector.record_request(
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_seconds=duration,
            )

            structured_logger.info(
                "HTTP request completed",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) if request.query_params else None,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
                user_agent=user_agent[:100] if user_agent else None,
            )

            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000

            structured_logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
            )
            raise


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Warns about every 4xx/5xx response, whichever handler produced it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if response.status_code >= 400:
            structured_logger.warning(
                "HTTP error response",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )

        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling with sanitized responses.

    In production:
    - Internal errors return generic messages (no stack traces)
    - All errors are logged with full details
    - Error responses include request ID for support

    In development:
    - Full error details are returned
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = get_request_id()

            # Log the full error
            structured_logger.error(
                "Unhandled exception",
                error=str(e),
                error_type=type(e).__name__,
                path=request.url.path,
                method=request.method,
            )

            # Return sanitized error response
            if self.debug:
                detail = str(e)
            else:
                detail = "An internal error occurred. Please contact support with the request ID."

            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "detail": detail,
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id} if request_id else {},
            )


def setup_middleware(app: FastAPI, debug: bool = False, enable_hsts: bool = False):
    """
    Configure all middleware for the application.

    Args:
        app: FastAPI application instance
        debug: Enable debug mode (detailed error messages)
        enable_hsts: Enable HSTS header (requires HTTPS)

    Order matters! Middleware is executed in reverse order of addition.
    """
    # These are added last but execute first
    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=enable_hsts)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)
    app.add_middleware(RequestIdMiddleware)
