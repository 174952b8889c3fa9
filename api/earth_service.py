"""
Synthesis of earth-frontend records from live backend data.

Resolves the requested variable against the backend metadata, fetches its
samples for one time step and assembles the GRIB2-like records the
frontend's ``current-<variable>-surface-level-gfs-1.0.json`` files used to
contain.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from src.errors import ParseError
from src.proxy import StreamingProxy
from src.translation import (
    analyze_variables,
    assemble_records,
    find_variable,
    format_time_code,
    hours_to_rfc3339,
    translate_grid,
)

logger = logging.getLogger(__name__)


async def build_earth_records(
    proxy: StreamingProxy,
    variable: str,
    time_code: Optional[float] = None,
    extra_params: Iterable[Tuple[str, str]] = (),
) -> List[Dict[str, Any]]:
    """
    Build the frontend record array for one variable.

    Args:
        proxy: backend access
        variable: backend variable name, either component of a vector pair,
            or a legacy alias (``wind``, ``temp``)
        time_code: hours since 1900; defaults to the first backend time
        extra_params: further query parameters forwarded to ``/data``
            (e.g. ``level``)

    Returns:
        One record dict for a scalar, two (U, V) for a vector pair

    Raises:
        MissingVariableError, MissingGridMetadataError, ParseError and the
        backend errors raised by the proxy
    """
    metadata = await proxy.fetch_metadata_document()

    descriptors = analyze_variables(metadata)
    descriptor = find_variable(descriptors, variable)
    grid = translate_grid(metadata)

    if time_code is None:
        time_code = metadata.first_time_code()
        if time_code is None:
            raise ParseError("Metadata has no usable time coordinate and no time was requested")

    samples = await proxy.fetch_data(
        descriptor.component_names,
        format_time_code(time_code),
        extra_params,
    )

    ref_time = hours_to_rfc3339(time_code)
    records = assemble_records(descriptor, grid, ref_time, samples)

    logger.info(
        f"Synthesized {len(records)} record(s) for '{variable}' "
        f"(backend {descriptor.name}, {descriptor.category.value}) at {ref_time}"
    )
    return [record.to_dict() for record in records]
