"""
Backend time codes.

The backend encodes time as hours since 1900-01-01T00:00:00Z (the ERA5/CF
convention). The frontend wants RFC3339 strings.
"""

import math

import numpy as np

TIME_EPOCH = np.datetime64("1900-01-01T00:00:00", "h")

# Offset bound that keeps the instant representable as int64 seconds
# (roughly +/- 1.3e11 years).
_MAX_OFFSET_HOURS = 2 ** 50


def hours_to_rfc3339(hours: float) -> str:
    """
    Convert an hours-since-1900 value to an RFC3339 UTC timestamp.

    The value is truncated toward zero to whole hours. There is no failure
    path: NaN counts as zero and huge values saturate, so the result can be
    a timestamp outside years 0001-9999. Callers do not get validation here.

    >>> hours_to_rfc3339(0.0)
    '1900-01-01T00:00:00Z'
    """
    if math.isnan(hours):
        offset = 0
    elif math.isinf(hours):
        offset = _MAX_OFFSET_HOURS if hours > 0 else -_MAX_OFFSET_HOURS
    else:
        offset = max(-_MAX_OFFSET_HOURS, min(_MAX_OFFSET_HOURS, int(hours)))

    instant = TIME_EPOCH + np.timedelta64(offset, "h")
    return str(np.datetime_as_string(instant, unit="s", timezone="UTC"))


def format_time_code(hours: float) -> str:
    """Render a time code for a backend query (``700464`` not ``700464.0``)."""
    if math.isfinite(hours) and float(hours).is_integer():
        return str(int(hours))
    return repr(float(hours))
