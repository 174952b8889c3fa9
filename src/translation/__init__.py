"""Metadata-driven translation of backend datasets into frontend records."""

from .metadata import MetadataDocument
from .variables import (
    VariableCategory,
    VariableDescriptor,
    ScalarKind,
    VectorKind,
    analyze_variables,
    categorize,
    find_variable,
)
from .grid import GridDescriptor, translate_grid
from .time_codes import hours_to_rfc3339, format_time_code
from .assembler import FrontendRecord, RecordHeader, assemble_records

__all__ = [
    'MetadataDocument',
    'VariableCategory',
    'VariableDescriptor',
    'ScalarKind',
    'VectorKind',
    'analyze_variables',
    'categorize',
    'find_variable',
    'GridDescriptor',
    'translate_grid',
    'hours_to_rfc3339',
    'format_time_code',
    'FrontendRecord',
    'RecordHeader',
    'assemble_records',
]
