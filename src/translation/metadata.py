"""
Read-only view of a backend metadata document.

The backend describes a dataset with three sections::

    {
        "coordinates": {"latitude": [...], "longitude": [...], "time": [...]},
        "dimensions":  {"latitude": {"size": 721}, ...},
        "variables":   {"t2m": {"attributes": {...}, "dimensions": [...]}, ...}
    }

Sections are exposed as mapping proxies so nothing downstream can mutate
the document during a request.
"""

import json
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from src.errors import ParseError

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, dict):
        return MappingProxyType(value)
    return _EMPTY


def is_number(value: Any) -> bool:
    """True for JSON numbers (bool is excluded even though it is an int)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class MetadataDocument:
    """Backend-supplied dataset description, valid for one request."""

    coordinates: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    dimensions: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    variables: Any = field(default_factory=lambda: _EMPTY)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MetadataDocument":
        # variables is kept as-is so the analyzer can tell "malformed" from "absent"
        variables = raw.get("variables")
        if isinstance(variables, dict):
            variables = MappingProxyType(variables)
        return cls(
            coordinates=_section(raw, "coordinates"),
            dimensions=_section(raw, "dimensions"),
            variables=variables,
        )

    @classmethod
    def from_bytes(cls, body: bytes) -> "MetadataDocument":
        try:
            raw = json.loads(body)
        except (UnicodeDecodeError, ValueError) as e:
            raise ParseError(f"Metadata is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ParseError("Metadata must be a JSON object")
        return cls.from_dict(raw)

    def coordinate(self, axis: str) -> Optional[Sequence[Any]]:
        values = self.coordinates.get(axis)
        return values if isinstance(values, list) else None

    def dimension_size(self, axis: str) -> Optional[int]:
        """Size of a dimension, or None when absent or not an integer.

        Accepts both ``{"size": n}`` and a bare ``n``.
        """
        dim = self.dimensions.get(axis)
        size = dim.get("size") if isinstance(dim, dict) else dim
        if isinstance(size, int) and not isinstance(size, bool):
            return size
        return None

    def first_time_code(self) -> Optional[float]:
        """First value of the time coordinate, or None if unusable."""
        times = self.coordinate("time")
        if times and is_number(times[0]) and math.isfinite(times[0]):
            return float(times[0])
        return None
