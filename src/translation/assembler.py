"""
Frontend record assembly.

Turns a variable descriptor, the grid, a timestamp and raw backend samples
into the GRIB2-like JSON records the earth frontend reads. A scalar becomes
one record; a vector pair becomes two, U first.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from src.errors import ParseError
from src.translation.grid import GridDescriptor
from src.translation.variables import (
    ScalarKind,
    VariableCategory,
    VariableDescriptor,
    VectorKind,
)

logger = logging.getLogger(__name__)

DISCIPLINE = 0
DISCIPLINE_NAME = "Meteorological products"

UNKNOWN_CATEGORY_CODE = 255

CATEGORY_CODES: Dict[VariableCategory, int] = {
    VariableCategory.TEMPERATURE: 0,
    VariableCategory.HUMIDITY: 1,
    VariableCategory.WIND: 2,
    VariableCategory.PRESSURE: 3,
}

CATEGORY_NAMES: Dict[VariableCategory, str] = {
    VariableCategory.TEMPERATURE: "Temperature",
    VariableCategory.WIND: "Momentum",
    VariableCategory.PRESSURE: "Pressure",
    VariableCategory.HUMIDITY: "Humidity",
    VariableCategory.PRECIPITATION: "Moisture",
    VariableCategory.RADIATION: "Radiation",
    VariableCategory.CLOUD: "Cloud",
    VariableCategory.GENERAL: "General",
}

SCALAR_PARAMETER_NUMBER = 0
U_PARAMETER = (2, "U-component")
V_PARAMETER = (3, "V-component")


def category_code(category: VariableCategory) -> int:
    return CATEGORY_CODES.get(category, UNKNOWN_CATEGORY_CODE)


def category_name(category: VariableCategory) -> str:
    return CATEGORY_NAMES[category]


@dataclass(frozen=True)
class RecordHeader:
    """Grid and parameter metadata of one frontend record."""
    ref_time: str
    parameter_category: int
    parameter_category_name: str
    parameter_number: int
    parameter_number_name: str
    parameter_unit: str
    grid: GridDescriptor
    discipline: int = DISCIPLINE
    discipline_name: str = DISCIPLINE_NAME

    def to_dict(self) -> Dict[str, Any]:
        g = self.grid
        return {
            "discipline": self.discipline,
            "disciplineName": self.discipline_name,
            "refTime": self.ref_time,
            "parameterCategory": self.parameter_category,
            "parameterCategoryName": self.parameter_category_name,
            "parameterNumber": self.parameter_number,
            "parameterNumberName": self.parameter_number_name,
            "parameterUnit": self.parameter_unit,
            "nx": g.nx,
            "ny": g.ny,
            "lo1": g.lo1,
            "la1": g.la1,
            "lo2": g.lo2,
            "la2": g.la2,
            "dx": g.dx,
            "dy": g.dy,
        }


@dataclass(frozen=True)
class FrontendRecord:
    """One record of the frontend schema: header, samples, meta tags."""
    header: RecordHeader
    data: Tuple[Optional[float], ...] = ()
    meta: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.to_dict(),
            "data": list(self.data),
            "meta": dict(self.meta),
        }


def flatten_samples(raw: Any) -> Tuple[Optional[float], ...]:
    """
    Flatten a backend sample array to 1-D floats in row-major order.

    The backend may nest samples as [time][lat][lon]. JSON nulls and
    non-finite values come out as None (JSON null).

    Raises:
        ParseError: ragged or non-numeric arrays
    """
    if raw is None:
        return ()
    try:
        values = np.asarray(raw, dtype=np.float64).ravel()
    except (TypeError, ValueError) as e:
        raise ParseError(f"Sample array is not a regular numeric array: {e}") from e
    return tuple(float(v) if math.isfinite(v) else None for v in values.tolist())


def _record(
    descriptor: VariableDescriptor,
    grid: GridDescriptor,
    ref_time: str,
    parameter: Tuple[int, str],
    samples: Any,
) -> FrontendRecord:
    number, number_name = parameter
    header = RecordHeader(
        ref_time=ref_time,
        parameter_category=category_code(descriptor.category),
        parameter_category_name=category_name(descriptor.category),
        parameter_number=number,
        parameter_number_name=number_name,
        parameter_unit=descriptor.units,
        grid=grid,
    )
    return FrontendRecord(header=header, data=flatten_samples(samples), meta={"date": ref_time})


def assemble_records(
    descriptor: VariableDescriptor,
    grid: GridDescriptor,
    ref_time: str,
    samples: Mapping[str, Any],
) -> List[FrontendRecord]:
    """
    Build the frontend records for one variable.

    Args:
        descriptor: variable to render (scalar or vector pair)
        grid: grid geometry shared by all records
        ref_time: RFC3339 timestamp used for refTime and meta.date
        samples: backend ``data`` mapping of variable name -> sample array;
            a missing name yields an empty data list

    Returns:
        [scalar] or [U, V]
    """
    kind = descriptor.kind
    if isinstance(kind, VectorKind):
        records = [
            _record(descriptor, grid, ref_time, U_PARAMETER, samples.get(kind.u_component)),
            _record(descriptor, grid, ref_time, V_PARAMETER, samples.get(kind.v_component)),
        ]
    elif isinstance(kind, ScalarKind):
        parameter = (SCALAR_PARAMETER_NUMBER, descriptor.long_name)
        records = [_record(descriptor, grid, ref_time, parameter, samples.get(descriptor.name))]
    else:
        raise TypeError(f"Unknown variable kind: {kind!r}")

    for name in descriptor.component_names:
        if name not in samples:
            logger.warning(f"Backend data has no samples for '{name}', emitting empty data")
    return records
