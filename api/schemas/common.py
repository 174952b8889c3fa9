"""Common shared schemas used across multiple domains."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every gateway error response."""
    error: str
    detail: str
    request_id: Optional[str] = None
    backend_status: Optional[int] = None
