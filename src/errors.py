"""
Gateway error taxonomy.

Every failure the translation engine or the streaming proxy can report is a
subclass of GatewayError. The web layer maps each class to an HTTP status;
nothing here is retried or partially recovered.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway failures."""

    kind = "gateway_error"
    http_status = 500

    def __init__(self, message: str, backend_url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.backend_url = backend_url


class BackendConnectionError(GatewayError):
    """Backend unreachable (DNS, refused connection, timeout, broken stream)."""

    kind = "connection_error"
    http_status = 502


class BackendStatusError(GatewayError):
    """Backend answered with a non-2xx status."""

    kind = "backend_status_error"
    http_status = 502

    def __init__(self, status_code: int, backend_url: Optional[str] = None):
        super().__init__(f"Backend returned status {status_code}", backend_url)
        self.status_code = status_code


class ParseError(GatewayError):
    """Backend metadata or data payload is not the JSON shape we expect."""

    kind = "parse_error"
    http_status = 502


class MissingVariableError(GatewayError):
    """Requested variable is not present in the analyzed metadata."""

    kind = "missing_variable"
    http_status = 404

    def __init__(self, variable: str):
        super().__init__(f"Variable '{variable}' not found in backend metadata")
        self.variable = variable


class MissingGridMetadataError(GatewayError):
    """Coordinate arrays or dimension sizes needed for the grid are absent."""

    kind = "missing_grid_metadata"
    http_status = 502
