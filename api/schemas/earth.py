"""Earth-frontend record schemas (GRIB2-like JSON)."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RecordHeader(BaseModel):
    """Grid and parameter metadata of one record."""
    discipline: int = 0
    disciplineName: str = "Meteorological products"
    refTime: str
    parameterCategory: int = Field(..., description="0 temperature, 1 humidity, 2 momentum, 3 pressure, 255 other")
    parameterCategoryName: str
    parameterNumber: int = Field(..., description="0 scalar, 2 U-component, 3 V-component")
    parameterNumberName: str
    parameterUnit: str
    nx: int = Field(..., ge=1, le=65535)
    ny: int = Field(..., ge=1, le=65535)
    lo1: float
    la1: float
    lo2: float
    la2: float
    dx: float
    dy: float


class EarthRecord(BaseModel):
    """One frontend record; a vector variable yields two (U then V)."""
    header: RecordHeader
    data: List[Optional[float]]  # row-major, null for missing samples
    meta: Dict[str, str]
