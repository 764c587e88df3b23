"""
SeriesFrame - A time-indexed columnar table engine.

SeriesFrame pairs one ordered timestamp axis with named float columns of equal
length and keeps them in lockstep through resampling, segmentation, slicing,
concatenation and functional transforms. Built on numpy, with pandas, PyArrow
and Polars interop.

Main components:
    - SeriesFrame: Core table (index + columns)
    - Aggregator registry: Named reducers used by resample()
    - seriesframe.io: File ingestion through named schemas
    - seriesframe.display: Rich table rendering
"""

import logging

from .aggregations import aggregator, list_registered_aggregators
from .core import (
    DataPoint,
    PositionBound,
    SeriesFrame,
    TableLoader,
    TableSetter,
    TimestampBound,
    TimestampStringBound,
    ValidationReport,
)
from .display import render
from .errors import (
    BoundsError,
    ColumnNotFoundError,
    DimensionMismatchError,
    EmptyTableError,
    OrderingError,
    ParameterError,
    ReadError,
    SchemaError,
    SeriesFrameError,
    ValidationError,
)
from .intervals import parse_interval

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "SeriesFrame",
    "DataPoint",
    "ValidationReport",
    "PositionBound",
    "TimestampBound",
    "TimestampStringBound",
    "TableLoader",
    "TableSetter",
    "aggregator",
    "list_registered_aggregators",
    "parse_interval",
    "render",
    "SeriesFrameError",
    "ValidationError",
    "OrderingError",
    "SchemaError",
    "BoundsError",
    "ParameterError",
    "DimensionMismatchError",
    "EmptyTableError",
    "ColumnNotFoundError",
    "ReadError",
]
