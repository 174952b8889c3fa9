"""
Unit tests for variable discovery.

Tests coordinate filtering, keyword categorization, U/V pair detection and
descriptor lookup (including the legacy wind/temp names).
"""

import pytest

from src.errors import MissingVariableError
from src.translation import (
    MetadataDocument,
    ScalarKind,
    VariableCategory,
    VectorKind,
    analyze_variables,
    categorize,
    find_variable,
)
from src.translation.variables import vector_counterpart


def _doc(variables):
    return MetadataDocument.from_dict({"variables": variables})


class TestCategorize:
    """Tests for categorize()."""

    def test_temperature(self):
        assert categorize("t2m", "2 metre temperature") is VariableCategory.TEMPERATURE

    def test_pressure(self):
        assert categorize("sp", "Surface pressure") is VariableCategory.PRESSURE

    def test_wind_component(self):
        assert categorize("u10", "10 metre U wind component") is VariableCategory.WIND

    def test_dewpoint_hits_temperature_first(self):
        """Rules are ordered: 'temperature' in the long name wins over 'dewpoint'."""
        assert categorize("d2m", "2 metre dewpoint temperature") is VariableCategory.TEMPERATURE

    def test_humidity(self):
        assert categorize("r", "Relative humidity") is VariableCategory.HUMIDITY

    def test_precipitation(self):
        assert categorize("tp", "Total precipitation") is VariableCategory.PRECIPITATION

    def test_radiation(self):
        assert categorize("tisr", "TOA incident solar radiation") is VariableCategory.RADIATION

    def test_cloud(self):
        assert categorize("tcc", "Total cloud cover") is VariableCategory.CLOUD

    def test_case_insensitive(self):
        assert categorize("T2M") is VariableCategory.TEMPERATURE

    def test_general_fallback(self):
        assert categorize("z", "Geopotential") is VariableCategory.GENERAL


class TestVectorCounterpart:

    def test_lowercase(self):
        assert vector_counterpart("u10") == "v10"

    def test_uppercase(self):
        assert vector_counterpart("U") == "V"

    def test_only_first_u_replaced(self):
        assert vector_counterpart("u_surface") == "v_surface"

    def test_not_a_u_component(self):
        assert vector_counterpart("t2m") is None
        assert vector_counterpart("") is None


class TestAnalyzeVariables:
    """Tests for analyze_variables()."""

    def test_pair_and_scalar(self):
        descriptors = analyze_variables(_doc({"u10": {}, "v10": {}, "t2m": {}}))

        assert len(descriptors) == 2
        wind, temp = descriptors
        assert wind.kind == VectorKind(u_component="u10", v_component="v10")
        assert temp.name == "t2m"
        assert isinstance(temp.kind, ScalarKind)

    def test_components_never_scalars(self):
        descriptors = analyze_variables(_doc({"u10": {}, "v10": {}, "t2m": {}}))
        scalar_names = {d.name for d in descriptors if not d.is_vector}
        assert "u10" not in scalar_names
        assert "v10" not in scalar_names

    def test_v_listed_before_u(self):
        descriptors = analyze_variables(_doc({"v10": {}, "t2m": {}, "u10": {}}))
        assert [d.name for d in descriptors] == ["t2m", "u10"]
        assert descriptors[1].is_vector

    def test_coordinates_skipped(self):
        doc = _doc({
            "longitude": {}, "latitude": {}, "time": {}, "level": {}, "sp": {},
        })
        assert [d.name for d in analyze_variables(doc)] == ["sp"]

    def test_unpaired_u_is_scalar(self):
        descriptors = analyze_variables(_doc({"u100": {}}))
        assert len(descriptors) == 1
        assert isinstance(descriptors[0].kind, ScalarKind)

    def test_attribute_defaults(self):
        descriptor = analyze_variables(_doc({"z": {"attributes": {}}}))[0]
        assert descriptor.long_name == "z"
        assert descriptor.units == ""
        assert descriptor.dimensions == ()

    def test_attributes_read(self, sample_metadata):
        descriptors = analyze_variables(MetadataDocument.from_dict(sample_metadata))
        by_name = {d.name: d for d in descriptors}

        assert set(by_name) == {"u10", "t2m", "sp", "d2m"}
        assert by_name["t2m"].units == "K"
        assert by_name["t2m"].long_name == "2 metre temperature"
        assert by_name["t2m"].dimensions == ("time", "latitude", "longitude")
        assert by_name["u10"].category is VariableCategory.WIND
        assert by_name["sp"].category is VariableCategory.PRESSURE

    def test_non_object_entry_treated_as_empty(self):
        descriptor = analyze_variables(_doc({"sd": "oops"}))[0]
        assert descriptor.long_name == "sd"
        assert descriptor.category is VariableCategory.PRECIPITATION

    @pytest.mark.parametrize("raw", [{}, {"variables": None}, {"variables": [1, 2]}, {"variables": "x"}])
    def test_missing_or_malformed_section(self, raw):
        assert analyze_variables(MetadataDocument.from_dict(raw)) == []


class TestFindVariable:
    """Tests for find_variable()."""

    @pytest.fixture
    def descriptors(self, sample_metadata):
        return analyze_variables(MetadataDocument.from_dict(sample_metadata))

    def test_by_name(self, descriptors):
        assert find_variable(descriptors, "t2m").name == "t2m"

    def test_v_component_resolves_to_pair(self, descriptors):
        descriptor = find_variable(descriptors, "v10")
        assert descriptor.name == "u10"
        assert descriptor.is_vector

    def test_wind_alias(self, descriptors):
        assert find_variable(descriptors, "wind").component_names == ("u10", "v10")

    def test_temp_alias(self, descriptors):
        assert find_variable(descriptors, "temp").name == "t2m"

    def test_literal_name_beats_alias(self):
        descriptors = analyze_variables(_doc({"t2m": {}, "temp": {}}))
        assert find_variable(descriptors, "temp").name == "temp"

    def test_missing(self, descriptors):
        with pytest.raises(MissingVariableError) as exc_info:
            find_variable(descriptors, "swh")
        assert exc_info.value.variable == "swh"
        assert exc_info.value.http_status == 404

    def test_alias_without_match(self):
        descriptors = analyze_variables(_doc({"t2m": {}}))
        with pytest.raises(MissingVariableError):
            find_variable(descriptors, "wind")
