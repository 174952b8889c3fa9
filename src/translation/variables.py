"""
Variable discovery for backend metadata.

Walks the ``variables`` section of a metadata document, drops coordinate
variables, assigns each remaining variable a physical category and detects
U/V vector pairs so that e.g. ``u10``/``v10`` are served as one wind field.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from src.errors import MissingVariableError
from src.translation.metadata import MetadataDocument

logger = logging.getLogger(__name__)

COORDINATE_VARIABLES = frozenset({"longitude", "latitude", "time", "level"})


class VariableCategory(Enum):
    """Physical quantity a variable represents."""
    TEMPERATURE = "temperature"
    WIND = "wind"
    PRESSURE = "pressure"
    HUMIDITY = "humidity"
    PRECIPITATION = "precipitation"
    RADIATION = "radiation"
    CLOUD = "cloud"
    GENERAL = "general"


# Evaluated top to bottom, first hit wins. Keyword sets overlap
# ("d2m" long names contain "temperature"), so the order is part of the contract.
CATEGORY_RULES: Tuple[Tuple[VariableCategory, Tuple[str, ...]], ...] = (
    (VariableCategory.TEMPERATURE, ("temperature", "temp", "sst", "t2m")),
    (VariableCategory.WIND, ("wind", "u10", "v10", "component")),
    (VariableCategory.PRESSURE, ("pressure", "sp", "msl")),
    (VariableCategory.HUMIDITY, ("humidity", "dewpoint", "d2m")),
    (VariableCategory.PRECIPITATION, ("precipitation", "snow", "rain", "sd")),
    (VariableCategory.RADIATION, ("radiation", "solar", "tisr")),
    (VariableCategory.CLOUD, ("cloud", "tcw")),
)


@dataclass(frozen=True)
class ScalarKind:
    """Single-field variable."""


@dataclass(frozen=True)
class VectorKind:
    """Paired U/V components of one directional quantity."""
    u_component: str
    v_component: str


VariableKind = Union[ScalarKind, VectorKind]


@dataclass(frozen=True)
class VariableDescriptor:
    """Derived view of one logical variable (scalar or vector pair)."""
    name: str
    long_name: str
    units: str
    category: VariableCategory
    kind: VariableKind
    dimensions: Tuple[str, ...] = ()

    @property
    def is_vector(self) -> bool:
        return isinstance(self.kind, VectorKind)

    @property
    def component_names(self) -> Tuple[str, ...]:
        """Backend variable names needed to build this descriptor's records."""
        if isinstance(self.kind, VectorKind):
            return (self.kind.u_component, self.kind.v_component)
        return (self.name,)


def categorize(name: str, long_name: str = "") -> VariableCategory:
    """Assign a category from keywords found in the name and long name."""
    haystack = f"{name} {long_name}".lower()
    for category, keywords in CATEGORY_RULES:
        if any(keyword in haystack for keyword in keywords):
            return category
    return VariableCategory.GENERAL


def vector_counterpart(name: str) -> Optional[str]:
    """Name of the V component matching a U component name, else None."""
    if not name or name[0] not in ("u", "U"):
        return None
    return name.replace("u", "v", 1).replace("U", "V", 1)


def _describe(name: str, entry: Any, kind: VariableKind) -> VariableDescriptor:
    entry = entry if isinstance(entry, dict) else {}
    attributes = entry.get("attributes")
    attributes = attributes if isinstance(attributes, dict) else {}

    long_name = attributes.get("long_name")
    long_name = long_name if isinstance(long_name, str) and long_name else name
    units = attributes.get("units")
    units = units if isinstance(units, str) else ""

    dims = entry.get("dimensions")
    dims = tuple(d for d in dims if isinstance(d, str)) if isinstance(dims, list) else ()

    return VariableDescriptor(
        name=name,
        long_name=long_name,
        units=units,
        category=categorize(name, long_name),
        kind=kind,
        dimensions=dims,
    )


def _detect_pairs(names: List[str]) -> Dict[str, str]:
    """Map each U name to its V counterpart; a V name is claimed once."""
    present = set(names)
    pairs: Dict[str, str] = {}
    claimed = set()
    for name in names:
        counterpart = vector_counterpart(name)
        if counterpart and counterpart in present and counterpart not in claimed:
            pairs[name] = counterpart
            claimed.add(counterpart)
    return pairs


def analyze_variables(metadata: MetadataDocument) -> List[VariableDescriptor]:
    """
    Build the ordered list of variable descriptors for a metadata document.

    Coordinate variables are skipped. A U/V pair is emitted once, at the
    position of its U component; its V component never shows up as a
    separate scalar. A missing or malformed ``variables`` section yields an
    empty list.
    """
    variables = metadata.variables
    if not isinstance(variables, Mapping):
        logger.debug("Metadata has no usable variables section")
        return []

    names = [n for n in variables if isinstance(n, str) and n not in COORDINATE_VARIABLES]
    pairs = _detect_pairs(names)
    consumed = set(pairs.values())

    descriptors: List[VariableDescriptor] = []
    for name in names:
        if name in consumed:
            continue
        if name in pairs:
            kind: VariableKind = VectorKind(u_component=name, v_component=pairs[name])
        else:
            kind = ScalarKind()
        descriptors.append(_describe(name, variables[name], kind))

    logger.debug(
        f"Analyzed {len(names)} variables: {len(pairs)} vector pairs, "
        f"{len(descriptors) - len(pairs)} scalars"
    )
    return descriptors


# Frontend route names that predate metadata discovery.
LEGACY_ALIASES: Dict[str, Tuple[VariableCategory, type]] = {
    "wind": (VariableCategory.WIND, VectorKind),
    "temp": (VariableCategory.TEMPERATURE, ScalarKind),
}


def find_variable(descriptors: List[VariableDescriptor], name: str) -> VariableDescriptor:
    """
    Look up a descriptor by variable name.

    Matches the descriptor name or either vector component. Falls back to the
    legacy ``wind``/``temp`` aliases when no backend variable has that name.

    Raises:
        MissingVariableError: when nothing matches
    """
    for descriptor in descriptors:
        if name in descriptor.component_names or descriptor.name == name:
            return descriptor

    alias = LEGACY_ALIASES.get(name)
    if alias is not None:
        category, kind_type = alias
        for descriptor in descriptors:
            if descriptor.category is category and isinstance(descriptor.kind, kind_type):
                return descriptor

    raise MissingVariableError(name)
