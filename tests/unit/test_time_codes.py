"""Unit tests for time code conversion."""

import math
from datetime import datetime, timedelta, timezone

import pytest

from src.translation import format_time_code, hours_to_rfc3339


class TestHoursToRfc3339:

    def test_epoch(self):
        assert hours_to_rfc3339(0.0) == "1900-01-01T00:00:00Z"

    def test_era5_time_code(self):
        instant = datetime(1900, 1, 1, tzinfo=timezone.utc) + timedelta(hours=700464)
        assert hours_to_rfc3339(700464.0) == instant.strftime("%Y-%m-%dT%H:%M:%SZ")

    def test_one_day(self):
        assert hours_to_rfc3339(24.0) == "1900-01-02T00:00:00Z"

    def test_fraction_truncated(self):
        assert hours_to_rfc3339(1.9) == "1900-01-01T01:00:00Z"

    def test_negative_offset(self):
        assert hours_to_rfc3339(-24.0) == "1899-12-31T00:00:00Z"

    def test_nan_is_epoch(self):
        assert hours_to_rfc3339(math.nan) == "1900-01-01T00:00:00Z"

    @pytest.mark.parametrize("value", [math.inf, -math.inf, 1e300])
    def test_extreme_values_do_not_raise(self, value):
        assert hours_to_rfc3339(value).endswith("Z")


class TestFormatTimeCode:

    def test_integral(self):
        assert format_time_code(700464.0) == "700464"

    def test_fractional(self):
        assert format_time_code(700464.5) == "700464.5"
