"""
Rossby-Vis gateway Pydantic schemas.

Re-exports all schema classes:
    from api.schemas import EarthRecord, ErrorResponse
"""

# Common
from .common import ErrorResponse  # noqa: F401

# Earth frontend records
from .earth import RecordHeader, EarthRecord  # noqa: F401
