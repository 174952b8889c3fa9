"""
Unit tests for frontend record assembly.

Tests the exact record layout, scalar vs. vector output, GRIB-style codes
and sample flattening.
"""

import math

import pytest

from src.errors import ParseError
from src.translation import (
    GridDescriptor,
    MetadataDocument,
    ScalarKind,
    VariableCategory,
    VariableDescriptor,
    VectorKind,
    analyze_variables,
    assemble_records,
    find_variable,
)
from src.translation.assembler import category_code, flatten_samples

REF_TIME = "1979-11-29T00:00:00Z"

GRID = GridDescriptor(nx=3, ny=3, lo1=0.0, la1=90.0, lo2=0.5, la2=89.5, dx=0.25, dy=0.25)

HEADER_KEYS = [
    "discipline", "disciplineName", "refTime",
    "parameterCategory", "parameterCategoryName",
    "parameterNumber", "parameterNumberName", "parameterUnit",
    "nx", "ny", "lo1", "la1", "lo2", "la2", "dx", "dy",
]


def _scalar(name="t2m", long_name="2 metre temperature", units="K",
            category=VariableCategory.TEMPERATURE):
    return VariableDescriptor(name, long_name, units, category, ScalarKind())


def _vector():
    return VariableDescriptor(
        "u10", "10 metre U wind component", "m s**-1", VariableCategory.WIND,
        VectorKind(u_component="u10", v_component="v10"),
    )


class TestScalarRecords:

    def test_single_record_layout(self):
        records = assemble_records(_scalar(), GRID, REF_TIME, {"t2m": [1.0, 2.0]})
        assert len(records) == 1

        record = records[0].to_dict()
        assert list(record) == ["header", "data", "meta"]
        assert list(record["header"]) == HEADER_KEYS
        assert record["data"] == [1.0, 2.0]
        assert record["meta"] == {"date": REF_TIME}

    def test_header_values(self):
        header = assemble_records(_scalar(), GRID, REF_TIME, {"t2m": []})[0].to_dict()["header"]
        assert header == {
            "discipline": 0,
            "disciplineName": "Meteorological products",
            "refTime": REF_TIME,
            "parameterCategory": 0,
            "parameterCategoryName": "Temperature",
            "parameterNumber": 0,
            "parameterNumberName": "2 metre temperature",
            "parameterUnit": "K",
            "nx": 3, "ny": 3,
            "lo1": 0.0, "la1": 90.0, "lo2": 0.5, "la2": 89.5,
            "dx": 0.25, "dy": 0.25,
        }

    def test_missing_samples_give_empty_data(self):
        record = assemble_records(_scalar(), GRID, REF_TIME, {})[0]
        assert record.data == ()
        assert record.to_dict()["data"] == []


class TestVectorRecords:

    def test_u_then_v(self):
        records = assemble_records(_vector(), GRID, REF_TIME, {"u10": [1.0], "v10": [-1.0]})
        u, v = [r.to_dict() for r in records]

        assert u["header"]["parameterNumber"] == 2
        assert u["header"]["parameterNumberName"] == "U-component"
        assert v["header"]["parameterNumber"] == 3
        assert v["header"]["parameterNumberName"] == "V-component"
        assert u["data"] == [1.0]
        assert v["data"] == [-1.0]

    def test_shared_header_fields(self):
        u, v = assemble_records(_vector(), GRID, REF_TIME, {})
        for record in (u, v):
            header = record.to_dict()["header"]
            assert header["parameterCategory"] == 2
            assert header["parameterCategoryName"] == "Momentum"
            assert header["parameterUnit"] == "m s**-1"
            assert header["refTime"] == REF_TIME

    def test_from_analyzed_metadata(self, sample_metadata, sample_data):
        descriptors = analyze_variables(MetadataDocument.from_dict(sample_metadata))
        records = assemble_records(find_variable(descriptors, "wind"), GRID, REF_TIME, sample_data["data"])
        assert [r.header.parameter_number for r in records] == [2, 3]
        assert len(records[0].data) == 9


class TestCategoryCodes:

    @pytest.mark.parametrize("category,code", [
        (VariableCategory.TEMPERATURE, 0),
        (VariableCategory.HUMIDITY, 1),
        (VariableCategory.WIND, 2),
        (VariableCategory.PRESSURE, 3),
        (VariableCategory.PRECIPITATION, 255),
        (VariableCategory.RADIATION, 255),
        (VariableCategory.CLOUD, 255),
        (VariableCategory.GENERAL, 255),
    ])
    def test_codes(self, category, code):
        assert category_code(category) == code

    def test_general_scalar_record(self):
        descriptor = _scalar("z", "Geopotential", "m**2 s**-2", VariableCategory.GENERAL)
        header = assemble_records(descriptor, GRID, REF_TIME, {})[0].to_dict()["header"]
        assert header["parameterCategory"] == 255
        assert header["parameterCategoryName"] == "General"


class TestFlattenSamples:

    def test_nested_row_major(self):
        assert flatten_samples([[[1, 2], [3, 4]]]) == (1.0, 2.0, 3.0, 4.0)

    def test_nulls_and_non_finite(self):
        assert flatten_samples([1.0, None, math.nan, math.inf]) == (1.0, None, None, None)

    def test_none(self):
        assert flatten_samples(None) == ()

    def test_ragged(self):
        with pytest.raises(ParseError):
            flatten_samples([[1, 2], [3]])

    def test_non_numeric(self):
        with pytest.raises(ParseError):
            flatten_samples(["warm", "cold"])
