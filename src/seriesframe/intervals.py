from datetime import timedelta
from typing import Sequence, Union

import re

import numpy as np
import pandas as pd

from .errors import ParameterError

# ---------------------------------------------------------------------
# Interval units: alias -> pandas Timedelta unit
# ---------------------------------------------------------------------

INTERVAL_UNITS: dict[str, str] = {
    "ms": "ms",
    "millis": "ms",
    "s": "s",
    "sec": "s",
    "secs": "s",
    "second": "s",
    "seconds": "s",
    "m": "min",
    "min": "min",
    "mins": "min",
    "minute": "min",
    "minutes": "min",
    "h": "h",
    "hr": "h",
    "hrs": "h",
    "hour": "h",
    "hours": "h",
    "d": "D",
    "day": "D",
    "days": "D",
    "w": "W",
    "wk": "W",
    "week": "W",
    "weeks": "W",
}

# Calendar units have no fixed length and cannot drive a bucket scan
CALENDAR_UNITS = {"mo", "month", "months", "q", "quarter", "y", "year", "years"}

IntervalLike = Union[str, timedelta, np.timedelta64, pd.Timedelta]


def _split_interval(interval: str) -> tuple[int, str]:
    """
    Split interval strings like '1day', '15min', '5m', '1 h' -> (15, 'min').
    """
    m = re.fullmatch(r"(\d+)\s*([A-Za-z]+)", interval.strip())
    if not m:
        raise ParameterError(f"Invalid interval: {interval!r}")
    return int(m.group(1)), m.group(2).lower()


def parse_interval(interval: IntervalLike) -> pd.Timedelta:
    """
    Convert a human interval into a concrete, strictly positive duration.

    Accepts strings ('1day', '15min', '2h', '1w', '500ms', ...) as well as
    timedelta-like objects.

    Raises:
        ParameterError: unknown unit, calendar unit, or non-positive duration.
    """
    if isinstance(interval, str):
        n, unit = _split_interval(interval)
        if unit in CALENDAR_UNITS:
            raise ParameterError(
                f"Calendar interval {interval!r} has no fixed duration; use days or weeks."
            )
        if unit not in INTERVAL_UNITS:
            raise ParameterError(f"Unknown interval unit {unit!r} in {interval!r}")
        duration = pd.Timedelta(n, unit=INTERVAL_UNITS[unit])
    elif isinstance(interval, (timedelta, np.timedelta64)):
        duration = pd.Timedelta(interval)
    else:
        raise ParameterError(f"Unsupported interval type: {type(interval).__name__}")

    if duration <= pd.Timedelta(0):
        raise ParameterError(f"Interval must be positive, got {interval!r}")
    return duration


# ---------------------------------------------------------------------
# Timestamp Helpers
# ---------------------------------------------------------------------

def normalize_timestamp(x) -> pd.Timestamp:
    """
    Convert a timestamp-like input to a tz-aware UTC pd.Timestamp.

    Naive inputs are assumed to already be UTC.
    """
    ts = pd.Timestamp(x)
    if ts is pd.NaT:
        raise ValueError(f"Not a timestamp: {x!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    else:
        ts = ts.tz_convert("UTC")
    return ts


def to_datetime64(x) -> np.datetime64:
    """Timestamp-like -> naive UTC numpy datetime64[ns]."""
    return normalize_timestamp(x).tz_localize(None).to_datetime64()


def from_datetime64(value: np.datetime64) -> pd.Timestamp:
    """Stored index value -> tz-aware UTC pd.Timestamp."""
    return pd.Timestamp(value).tz_localize("UTC")


def to_index_array(values: Sequence) -> np.ndarray:
    """
    Build the canonical index array: datetime64[ns], UTC, tz-naive.

    Handled cases:
    - datetime / pd.Timestamp / np.datetime64 values (tz-aware converted to UTC).
    - Strings in any format pandas can parse (mixed formats allowed).
    - Numeric epoch (s or ms) via heuristic, like the canonical ts cast.

    Raises:
        ValueError: unparsable or missing (None, NaN, NaT) timestamps.
    """
    if isinstance(values, np.ndarray) and np.issubdtype(values.dtype, np.datetime64):
        out = values.astype("datetime64[ns]", copy=True)
        if np.isnat(out).any():
            raise ValueError(f"Missing timestamp at position {int(np.flatnonzero(np.isnat(out))[0])}")
        return out

    arr = np.asarray(values, dtype=object) if not isinstance(values, pd.Index) else values
    if len(arr) == 0:
        return np.array([], dtype="datetime64[ns]")

    if isinstance(values, (pd.DatetimeIndex, pd.Series)) and pd.api.types.is_datetime64_any_dtype(values):
        idx = pd.DatetimeIndex(values)
    elif all(isinstance(v, str) for v in arr):
        idx = pd.DatetimeIndex(pd.to_datetime(list(arr), utc=True, format="mixed"))
    elif all(isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, bool) for v in arr):
        nums = np.asarray(arr, dtype="float64")
        # Heuristic: > 1e11 => ms
        unit = "ms" if np.nanmax(np.abs(nums)) > 10**11 else "s"
        idx = pd.DatetimeIndex(pd.to_datetime(nums, unit=unit, utc=True))
    else:
        idx = pd.DatetimeIndex(pd.to_datetime(list(arr), utc=True))

    if idx.isna().any():
        raise ValueError(f"Missing timestamp at position {int(np.flatnonzero(idx.isna())[0])}")

    if idx.tz is None:
        idx = idx.tz_localize("UTC")
    else:
        idx = idx.tz_convert("UTC")
    return idx.tz_localize(None).to_numpy(dtype="datetime64[ns]")
