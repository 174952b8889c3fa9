"""
Grid geometry for frontend records.

Derives the regular lat/lon grid header (cell counts, corners, spacing)
from the coordinate arrays and dimension sizes of a metadata document.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from src.errors import MissingGridMetadataError
from src.translation.metadata import MetadataDocument, is_number

logger = logging.getLogger(__name__)

UINT16_MAX = 65535


@dataclass(frozen=True)
class GridDescriptor:
    """Regular grid: nx x ny cells from (lo1, la1) to (lo2, la2)."""
    nx: int
    ny: int
    lo1: float
    la1: float
    lo2: float
    la2: float
    dx: float
    dy: float


def _axis_values(metadata: MetadataDocument, axis: str) -> Sequence[float]:
    values: Optional[Sequence[Any]] = metadata.coordinate(axis)
    if not values:
        raise MissingGridMetadataError(f"coordinates.{axis} is missing or empty")
    if not all(is_number(v) for v in values):
        raise MissingGridMetadataError(f"coordinates.{axis} must contain only numbers")
    # json accepts NaN/Infinity literals; they cannot be serialized back out
    if not all(math.isfinite(v) for v in values):
        raise MissingGridMetadataError(f"coordinates.{axis} contains non-finite values")
    return values


def _axis_size(metadata: MetadataDocument, axis: str) -> int:
    size = metadata.dimension_size(axis)
    if size is None:
        raise MissingGridMetadataError(f"dimensions.{axis}.size is missing or not an integer")
    if not 1 <= size <= UINT16_MAX:
        raise MissingGridMetadataError(f"dimensions.{axis}.size={size} is outside 1..{UINT16_MAX}")
    return size


def translate_grid(metadata: MetadataDocument) -> GridDescriptor:
    """
    Build the grid descriptor for a metadata document.

    Corners are the first/last coordinate values taken as given. Spacing is
    the corner span divided by (count - 1); a single-sample axis gets 1.0.
    Latitude is assumed to run north to south, so an ascending latitude
    array produces a negative dy.

    Raises:
        MissingGridMetadataError: latitude/longitude coordinates or sizes
            are absent, non-finite or have the wrong type
    """
    latitudes = _axis_values(metadata, "latitude")
    longitudes = _axis_values(metadata, "longitude")
    ny = _axis_size(metadata, "latitude")
    nx = _axis_size(metadata, "longitude")

    lo1, lo2 = float(longitudes[0]), float(longitudes[-1])
    la1, la2 = float(latitudes[0]), float(latitudes[-1])

    dx = (lo2 - lo1) / (nx - 1) if nx > 1 else 1.0
    dy = (la1 - la2) / (ny - 1) if ny > 1 else 1.0

    grid = GridDescriptor(nx=nx, ny=ny, lo1=lo1, la1=la1, lo2=lo2, la2=la2, dx=dx, dy=dy)
    logger.debug(f"Grid {nx}x{ny} lon [{lo1}, {lo2}] lat [{la1}, {la2}] dx={dx} dy={dy}")
    return grid
