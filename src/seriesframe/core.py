from dataclasses import dataclass, field
from typing import Callable, Iterator, Literal, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

import functools
import logging

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.compute as pc
import polars as pl
from datetime import datetime

from .aggregations import DEFAULT_AGGREGATOR, AggregationRequest, AggregatorLike, resolve_aggregators
from .display import DEFAULT_DEPTH
from .errors import (
    BoundsError,
    ColumnNotFoundError,
    DimensionMismatchError,
    EmptyTableError,
    OrderingError,
    ParameterError,
    SchemaError,
    ValidationError,
)
from .intervals import IntervalLike, from_datetime64, normalize_timestamp, parse_interval, to_datetime64, to_index_array

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Canonical layout: one timestamp axis + float64 columns
# ---------------------------------------------------------------------

INDEX_COL = "ts"

INDEX_DTYPE = "datetime64[ns]"

# Accepted names for the timestamp column when reading dataframes
TS_ALIASES = ("ts", "date", "Date", "DATE", "timestamp", "time", "datetime")


def _empty_index() -> np.ndarray:
    return np.array([], dtype=INDEX_DTYPE)


def _as_column(name: str, values) -> np.ndarray:
    try:
        arr = np.array(values, dtype="float64")
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Column '{name}' is not numeric: {exc}") from exc
    if arr.ndim != 1:
        raise ValidationError(f"Column '{name}' must be 1D, got shape {arr.shape}")
    return arr


# ---------------------------------------------------------------------
# Loader / Setter contracts
# ---------------------------------------------------------------------

@runtime_checkable
class TableLoader(Protocol):
    """Anything that can hand over a timestamp index and named float columns."""

    def get_index(self) -> Sequence: ...

    def get(self, column: str) -> Sequence[float]: ...

    def list_columns(self) -> list[str]: ...


@runtime_checkable
class TableSetter(Protocol):
    """Anything that accepts a timestamp index and named float columns."""

    def set_index(self, index: Sequence) -> None: ...

    def set(self, column: str, values: Sequence[float]) -> None: ...


# ---------------------------------------------------------------------
# Row view & validation report
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class DataPoint:
    """One timestamp with a scalar per column: the row view of a SeriesFrame."""

    index: pd.Timestamp
    columns: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_data(cls, timeindex, columns: Mapping[str, float]) -> 'DataPoint':
        """
        Build a DataPoint from any timestamp-like value (datetime, string, ...).

        Raises:
            ValidationError: If the timestamp cannot be parsed.
        """
        try:
            ts = normalize_timestamp(timeindex)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid timestamp for data point: {timeindex!r}") from exc
        return cls(ts, {str(k): float(v) for k, v in columns.items()})


@dataclass(frozen=True)
class ValidationReport:
    """Non-fatal findings of SeriesFrame.validate()."""

    rows: int
    unsorted: int = 0
    duplicates: int = 0

    @property
    def is_sorted(self) -> bool:
        return self.unsorted == 0

    @property
    def has_duplicates(self) -> bool:
        return self.duplicates > 0

    @property
    def ok(self) -> bool:
        return self.is_sorted and not self.has_duplicates


# ---------------------------------------------------------------------
# Slice bounds
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class PositionBound:
    """Row position; negative values count from the end (-1 -> len)."""

    position: int

    # `upper` is unused; kept so every bound kind resolves the same way
    def resolve(self, index: np.ndarray, *, upper: bool) -> int:
        n = len(index)
        pos = self.position
        if pos < 0:
            pos = n + pos + 1
        return min(max(pos, 0), n)


@dataclass(frozen=True)
class TimestampBound:
    """Absolute timestamp; resolves to the first row strictly after it."""

    timestamp: pd.Timestamp

    def resolve(self, index: np.ndarray, *, upper: bool) -> int:
        after = np.flatnonzero(index > to_datetime64(self.timestamp))
        if len(after):
            return int(after[0])
        # No row after the bound: upper -> last position, lower -> start
        if upper:
            return max(len(index) - 1, 0)
        return 0


@dataclass(frozen=True)
class TimestampStringBound:
    """Timestamp given as text, parsed when resolved."""

    text: str

    def resolve(self, index: np.ndarray, *, upper: bool) -> int:
        try:
            ts = normalize_timestamp(self.text)
        except (TypeError, ValueError) as exc:
            raise BoundsError(f"Cannot parse timestamp bound {self.text!r}") from exc
        return TimestampBound(ts).resolve(index, upper=upper)


SliceBound = Union[PositionBound, TimestampBound, TimestampStringBound]

BoundLike = Union[SliceBound, int, str, datetime, np.datetime64]


def _as_bound(value, which: str) -> SliceBound:
    """Wrap a raw slice argument into its bound kind."""
    if isinstance(value, (PositionBound, TimestampBound, TimestampStringBound)):
        return value
    if isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_)):
        return PositionBound(int(value))
    if isinstance(value, str):
        return TimestampStringBound(value)
    if isinstance(value, (datetime, np.datetime64)):
        try:
            return TimestampBound(normalize_timestamp(value))
        except ValueError as exc:
            raise BoundsError(f"Invalid timestamp for {which} bound: {value!r}") from exc
    raise BoundsError(
        f"Invalid type for {which} bound while slicing SeriesFrame: {type(value).__name__} ({value!r})"
    )


def _bucket_bounds(index: np.ndarray, step: np.timedelta64) -> Iterator[tuple[int, int]]:
    """
    Two-pointer scan yielding half-open [head, tail) row ranges.

    A bucket starts at the head timestamp and takes every following row
    whose timestamp is before head + step. The trailing bucket is included.
    """
    n = len(index)
    head = tail = 0
    while tail < n:
        if index[tail] < index[head] + step:
            tail += 1
        else:
            yield head, tail
            head = tail
    if head < n:
        yield head, n


# ---------------------------------------------------------------------
# Main Dataclass
# ---------------------------------------------------------------------

@dataclass(eq=False)
class SeriesFrame:
    """
    Time-indexed columnar table.

    Structure:
        - index: datetime64[ns] array, UTC (naive inputs are taken as UTC)
        - columns: name -> float64 array, each parallel to the index
        - max_size: advisory retention cap, only applied by capped()
        - meta: free-form string annotations, carried through transforms

    Invariant: every column has exactly len(index) values. Construction and
    every transform raise ValidationError instead of breaking it.

    Transforms return new frames and never share arrays with the receiver.
    Only the setter methods (set_index / set) mutate in place.
    """

    index: np.ndarray = field(default_factory=_empty_index)
    columns: dict[str, np.ndarray] = field(default_factory=dict)
    max_size: Optional[int] = None
    meta: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            self.index = to_index_array(self.index)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid time index: {exc}") from exc
        self.columns = {str(k): _as_column(str(k), v) for k, v in (self.columns or {}).items()}
        self.meta = dict(self.meta or {})
        if self.max_size is not None and self.max_size < 0:
            raise ParameterError(f"max_size must be >= 0, got {self.max_size}")
        self._check_lengths()

    # -----------------------------------------------------------------
    # Constructors
    # -----------------------------------------------------------------

    @classmethod
    def from_data(
        cls,
        index: Sequence,
        columns: Mapping[str, Sequence[float]],
        *,
        max_size: Optional[int] = None,
        meta: Optional[Mapping[str, str]] = None,
    ) -> 'SeriesFrame':
        """
        Constructor from raw arrays.

        Args:
            index: Timestamps (datetime, pd.Timestamp, np.datetime64, strings or epoch numbers).
            columns: Column name -> numeric values, each as long as `index`.
            max_size: Optional retention cap.
            meta: Optional annotations.

        Returns:
            SeriesFrame: New SeriesFrame instance.

        Raises:
            ValidationError: Unparsable timestamps or mismatched lengths.
        """
        return cls(index=index, columns=dict(columns), max_size=max_size, meta=dict(meta or {}))

    @classmethod
    def from_loader(cls, loader: TableLoader) -> 'SeriesFrame':
        """
        Constructor from any TableLoader. Loader errors propagate unchanged.
        """
        index = loader.get_index()
        columns = {name: loader.get(name) for name in loader.list_columns()}
        return cls(index=index, columns=columns)

    @classmethod
    def from_points(cls, points: Sequence[DataPoint]) -> 'SeriesFrame':
        """
        Constructor from row views. Every point must carry the same columns.

        Raises:
            SchemaError: If the points disagree on their column set.
        """
        points = list(points)
        if not points:
            return cls()
        names = list(points[0].columns)
        for p in points[1:]:
            if set(p.columns) != set(names):
                raise SchemaError(
                    f"DataPoint at {p.index} has columns {sorted(p.columns)}, expected {sorted(names)}"
                )
        return cls(
            index=[p.index for p in points],
            columns={name: [p.columns[name] for p in points] for name in names},
        )

    @classmethod
    def from_pandas(cls, df: pd.DataFrame, *, ts_col: Optional[str] = None) -> 'SeriesFrame':
        """
        Constructor from a pandas DataFrame.

        The timestamp comes from `ts_col`, else from the first column named like
        a timestamp ('ts', 'date', 'Date', 'timestamp', ...), else from a
        DatetimeIndex. Numeric columns become float columns; other columns
        (symbols, labels, ...) are left out.

        Args:
            df: Input pandas DataFrame.
            ts_col: Explicit timestamp column.

        Returns:
            SeriesFrame: New SeriesFrame instance.
        """
        if ts_col is None:
            ts_col = next((c for c in TS_ALIASES if c in df.columns), None)

        if ts_col is not None:
            if ts_col not in df.columns:
                raise ColumnNotFoundError(f"Timestamp column '{ts_col}' not found.")
            index = df[ts_col]
            data = df.drop(columns=[ts_col])
        elif isinstance(df.index, pd.DatetimeIndex):
            index = df.index
            data = df
        else:
            raise SchemaError("DataFrame has neither a timestamp column nor a DatetimeIndex.")

        columns = {}
        for name in data.columns:
            series = data[name]
            if pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series):
                columns[str(name)] = series.to_numpy(dtype="float64", na_value=np.nan)
            else:
                logger.debug("from_pandas: skipping non-numeric column %r", name)
        return cls(index=index, columns=columns)

    @classmethod
    def from_arrow(cls, table: pa.Table, *, ts_col: Optional[str] = None) -> 'SeriesFrame':
        """
        Constructor from an Arrow table (see from_pandas for column rules).
        """
        return cls.from_pandas(table.to_pandas(), ts_col=ts_col)

    @classmethod
    def from_polars(cls, pl_df: pl.DataFrame, *, ts_col: Optional[str] = None) -> 'SeriesFrame':
        return cls.from_arrow(pl_df.to_arrow(), ts_col=ts_col)

    # --- File IO: implemented in seriesframe.io.files ---

    @classmethod
    def from_file(cls, filepath, schema: Optional[str] = None) -> 'SeriesFrame':
        """
        Load a CSV or JSON file through a named schema ('yahoo', 'generic', 'split', 'auto', ...).
        """
        from .io.files import load_file
        return load_file(filepath, schema)

    @classmethod
    def from_directory(cls, directory, schema: Optional[str] = None) -> 'SeriesFrame':
        """
        Load every CSV/JSON file of a directory (name order) and append them.
        """
        from .io.files import load_directory
        return load_directory(directory, schema)

    # -----------------------------------------------------------------
    # Conversions
    # -----------------------------------------------------------------

    def to_pandas(self, index: Optional[Literal["ts"]] = None) -> pd.DataFrame:
        """
        Convert to pandas DataFrame.

        Args:
            index: None (default) keeps 'ts' as a column, 'ts' sets it as index.

        Returns:
            pd.DataFrame: 'ts' as datetime64[ns, UTC] plus one float64 column per column.
        """
        df = pd.DataFrame({INDEX_COL: pd.DatetimeIndex(self.index).tz_localize("UTC")})
        for name, values in self.columns.items():
            df[name] = values.copy()
        if index == "ts":
            df = df.set_index(INDEX_COL)
        return df

    def to_arrow(self) -> pa.Table:
        ts = pc.assume_timezone(pa.array(self.index, type=pa.timestamp("ns")), "UTC")
        arrays = [ts] + [pa.array(v, type=pa.float64()) for v in self.columns.values()]
        return pa.Table.from_arrays(arrays, names=[INDEX_COL] + list(self.columns))

    def to_polars(self) -> pl.DataFrame:
        return pl.from_arrow(self.to_arrow())

    def write_to(self, dst: TableSetter) -> TableSetter:
        """
        Push the index then every column into `dst`; returns `dst`.
        """
        dst.set_index(self.get_index())
        for name, values in self.columns.items():
            dst.set(name, values.copy())
        return dst

    # -----------------------------------------------------------------
    # Loader / Setter contracts
    # -----------------------------------------------------------------

    def get_index(self) -> np.ndarray:
        return self.index.copy()

    def get(self, column: str) -> np.ndarray:
        if column not in self.columns:
            raise ColumnNotFoundError(f"Column '{column}' not found.")
        return self.columns[column].copy()

    def set_index(self, index: Sequence) -> None:
        """
        Replace the index in place.

        Raises:
            ValidationError: Unparsable timestamps, or a length that no longer
                matches the existing columns.
        """
        try:
            new_index = to_index_array(index)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid time index: {exc}") from exc
        bad = {k: len(v) for k, v in self.columns.items() if len(v) != len(new_index)}
        if bad:
            raise ValidationError(
                f"Index of length {len(new_index)} does not match column lengths {bad}"
            )
        self.index = new_index

    def set(self, column: str, values: Sequence[float]) -> None:
        """
        Add or replace a column in place.

        Raises:
            ValidationError: Non-numeric values or a length different from the index.
        """
        arr = _as_column(column, values)
        if len(arr) != len(self.index):
            raise ValidationError(
                f"Column '{column}' has {len(arr)} values, index has {len(self.index)}"
            )
        self.columns[str(column)] = arr

    # -----------------------------------------------------------------
    # Structural queries
    # -----------------------------------------------------------------

    def list_columns(self) -> list[str]:
        return list(self.columns)

    def length(self) -> int:
        return len(self.index)

    def __len__(self) -> int:
        return len(self.index)

    def start(self) -> pd.Timestamp:
        """First timestamp. Raises EmptyTableError on an empty frame."""
        if len(self.index) == 0:
            raise EmptyTableError("start() of an empty SeriesFrame")
        return from_datetime64(self.index[0])

    def end(self) -> pd.Timestamp:
        """Last timestamp. Raises EmptyTableError on an empty frame."""
        if len(self.index) == 0:
            raise EmptyTableError("end() of an empty SeriesFrame")
        return from_datetime64(self.index[-1])

    def interval(self) -> pd.Timedelta:
        """Difference between the first two timestamps."""
        if len(self.index) < 2:
            raise EmptyTableError(
                f"interval() needs at least two rows, SeriesFrame has {len(self.index)}"
            )
        return pd.Timedelta(self.index[1] - self.index[0])

    def _check_lengths(self) -> None:
        n = len(self.index)
        bad = {k: len(v) for k, v in self.columns.items() if len(v) != n}
        if bad:
            raise ValidationError(
                f"validation failed: column lengths {bad} do not match index length {n}, cannot recover"
            )

    def validate(self) -> ValidationReport:
        """
        Check the frame.

        Column/index length mismatches raise ValidationError. Out-of-order and
        duplicate adjacent timestamps are counted, logged as warnings and
        returned; they do not block further use.

        Returns:
            ValidationReport: Counts of unsorted and duplicate adjacent pairs.
        """
        self._check_lengths()
        if len(self.index) < 2:
            return ValidationReport(rows=len(self.index))

        prev, curr = self.index[:-1], self.index[1:]
        unsorted = int(np.count_nonzero(curr < prev))
        duplicates = int(np.count_nonzero(curr == prev))

        if unsorted:
            logger.warning("validation warning: unsorted time index (%d out-of-order pairs)", unsorted)
        if duplicates:
            dup_keys = curr[curr == prev]
            logger.warning(
                "validation warning: %d duplicate index keys found (first: %s)",
                duplicates,
                from_datetime64(dup_keys[0]),
            )
        return ValidationReport(rows=len(self.index), unsorted=unsorted, duplicates=duplicates)

    # -----------------------------------------------------------------
    # Basic Utilities
    # -----------------------------------------------------------------

    def _derive(self, index: np.ndarray, columns: Mapping[str, np.ndarray]) -> 'SeriesFrame':
        return SeriesFrame(index=index, columns=dict(columns), max_size=self.max_size, meta=dict(self.meta))

    def _take(self, selector) -> 'SeriesFrame':
        """Rows picked by a slice, position array or boolean mask (copied)."""
        return self._derive(
            self.index[selector],
            {k: v[selector] for k, v in self.columns.items()},
        )

    def _resolve_columns(self, columns: Union[str, Sequence[str], None]) -> list[str]:
        if columns is None:
            return self.list_columns()
        if isinstance(columns, str):
            columns = [columns]
        missing = [c for c in columns if c not in self.columns]
        if missing:
            raise ColumnNotFoundError(f"Column(s) not found: {missing}")
        return list(columns)

    def copy(self) -> 'SeriesFrame':
        return self._take(slice(None))

    def head(self, n: int = DEFAULT_DEPTH) -> 'SeriesFrame':
        if n < 0:
            raise ParameterError(f"head() expects n >= 0, got {n}")
        return self._take(slice(0, n))

    def tail(self, n: int = DEFAULT_DEPTH) -> 'SeriesFrame':
        if n < 0:
            raise ParameterError(f"tail() expects n >= 0, got {n}")
        return self._take(slice(max(len(self.index) - n, 0), None))

    def capped(self) -> 'SeriesFrame':
        """Apply max_size: keep only the most recent max_size rows."""
        if self.max_size is None:
            return self.copy()
        return self.tail(self.max_size)

    def row(self, position: int) -> DataPoint:
        return DataPoint(
            from_datetime64(self.index[position]),
            {k: float(v[position]) for k, v in self.columns.items()},
        )

    def iter_points(self) -> Iterator[DataPoint]:
        for i in range(len(self.index)):
            yield self.row(i)

    def sort(self) -> 'SeriesFrame':
        """
        Sort by index.

        One stable permutation is computed from the timestamps and applied to
        the index and to every column, so each row keeps its values.

        Returns:
            SeriesFrame: New sorted SeriesFrame.
        """
        perm = np.argsort(self.index, kind="stable")
        return self._take(perm)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SeriesFrame):
            return NotImplemented
        if not np.array_equal(self.index, other.index):
            return False
        if set(self.columns) != set(other.columns):
            return False
        return all(
            np.array_equal(v, other.columns[k], equal_nan=True) for k, v in self.columns.items()
        )

    def __repr__(self) -> str:
        if len(self.index) == 0:
            span = "empty"
        else:
            span = f"{self.start()} -> {self.end()}"
        return f"SeriesFrame(rows={len(self.index)}, columns={self.list_columns()}, {span})"

    def print(self, depth: int = DEFAULT_DEPTH, **kwargs) -> None:
        """
        Pretty-print the first and last `depth` rows (all rows if len <= 2 * depth).
        """
        from .display import render
        render(self, depth, **kwargs)

    # -----------------------------------------------------------------
    # Resample & Split
    # -----------------------------------------------------------------

    def resample(
        self,
        interval: IntervalLike,
        aggregation: AggregationRequest = None,
        *,
        default: AggregatorLike = DEFAULT_AGGREGATOR,
    ) -> 'SeriesFrame':
        """
        Downsample into fixed-width buckets.

        Buckets are half-open [start, start + interval) where start is the
        first timestamp not yet assigned. Each bucket emits one row stamped
        with its start; every column is reduced by its aggregator. The last
        partial bucket is emitted too.

        Args:
            interval: Target duration ('2min', '1h', '1day', timedelta, ...).
            aggregation: Column -> aggregator name/callable mapping, or a preset
                name such as 'ohlcv'. Unmapped columns use `default`.
            default: Aggregator for unmapped columns (default: 'mean').

        Returns:
            SeriesFrame: Resampled SeriesFrame.

        Raises:
            ParameterError: Invalid interval, interval finer than the data,
                or unknown aggregator.
            ColumnNotFoundError: Aggregation requested for a missing column.
        """
        duration = parse_interval(interval)
        reducers = resolve_aggregators(self.columns, aggregation, default=default)

        # Upsampling is forbidden: target must be larger or equal to current
        if len(self.index) >= 2:
            source = self.interval()
            if duration < source:
                raise ParameterError(
                    f"Resample failed: cannot resample {source} data to a finer interval {duration}"
                )

        heads = []
        out: dict[str, list[float]] = {k: [] for k in self.columns}
        for head, tail in _bucket_bounds(self.index, duration.to_timedelta64()):
            heads.append(head)
            for name, values in self.columns.items():
                out[name].append(reducers[name](values[head:tail]))

        return self._derive(self.index[np.asarray(heads, dtype=np.intp)], out)

    def split(self, interval: IntervalLike) -> Iterator['SeriesFrame']:
        """
        Split into one segment per time bucket (see resample), keeping every row.

        For ex: split("1day") yields consecutive day-long segments. The
        returned iterator is lazy; an invalid interval fails immediately.
        """
        step = parse_interval(interval).to_timedelta64()
        return (self._take(slice(h, t)) for h, t in _bucket_bounds(self.index, step))

    def split_by_day(self, tz: Optional[str] = None) -> Iterator['SeriesFrame']:
        """
        Split into one segment per calendar day.

        A segment starts whenever the date of a row differs from the date of
        the previous row. Dates are UTC unless `tz` names another timezone.
        """
        if len(self.index) == 0:
            return iter(())

        if tz is None:
            days = self.index.astype("datetime64[D]")
        else:
            local = pd.DatetimeIndex(self.index).tz_localize("UTC").tz_convert(tz).tz_localize(None)
            days = local.to_numpy(dtype=INDEX_DTYPE).astype("datetime64[D]")

        # The closing edge is len(days): the last row always ends a segment
        edges = [0] + (np.flatnonzero(days[1:] != days[:-1]) + 1).tolist() + [len(days)]
        return (self._take(slice(a, b)) for a, b in zip(edges[:-1], edges[1:]))

    def split_by_batch_size(self, batch_size: int) -> Iterator['SeriesFrame']:
        """
        Split into segments of `batch_size` rows; the last one may be shorter.
        """
        if (
            isinstance(batch_size, (bool, np.bool_))
            or not isinstance(batch_size, (int, np.integer))
            or batch_size <= 0
        ):
            raise ParameterError(f"batch_size must be a positive integer, got {batch_size!r}")
        n = int(batch_size)
        return (self._take(slice(k, k + n)) for k in range(0, len(self.index), n))

    # -----------------------------------------------------------------
    # Slice & Append
    # -----------------------------------------------------------------

    def slice(self, lower: BoundLike, upper: BoundLike) -> 'SeriesFrame':
        """
        Rows in [lower, upper), each bound given by position or by timestamp.

        - int: position, negative counts from the end (-1 is len(frame)).
        - datetime / pd.Timestamp / np.datetime64 / str: first row strictly
          after that time. An upper timestamp after every row resolves to the
          last position; a lower one resolves to 0.

        Bounds are swapped when lower > upper.

        Raises:
            BoundsError: Unsupported bound type or unparsable timestamp string.
        """
        lo = _as_bound(lower, "lower").resolve(self.index, upper=False)
        hi = _as_bound(upper, "upper").resolve(self.index, upper=True)
        if lo > hi:
            lo, hi = hi, lo
        return self._take(slice(lo, hi))

    def append(self, other: 'SeriesFrame') -> 'SeriesFrame':
        """
        Concatenate `other` after this frame.

        Only the start timestamps are compared; overlap between this frame's
        tail and `other` is not detected. Columns only present in `other` are
        dropped.

        Returns:
            SeriesFrame: New concatenated SeriesFrame.

        Raises:
            OrderingError: `other` starts before this frame.
            SchemaError: `other` lacks one of this frame's columns.
            ValidationError: The result breaks the length invariant.
        """
        if not isinstance(other, SeriesFrame):
            raise TypeError("`other` must be a SeriesFrame")

        if len(other.index) == 0:
            return self.copy()

        if len(self.index) > 0 and self.start() > other.start():
            raise OrderingError(
                f"Append failed: other starts at {other.start()}, before {self.start()}"
            )

        missing = [c for c in self.columns if c not in other.columns]
        if missing:
            raise SchemaError(f"Append failed: column(s) {missing} missing from other")

        if len(self.index) == 0 and not self.columns:
            return other.copy()

        dropped = [c for c in other.columns if c not in self.columns]
        if dropped:
            logger.debug("append: dropping column(s) %s absent from receiver", dropped)

        result = self._derive(
            np.concatenate([self.index, other.index]),
            {c: np.concatenate([v, other.columns[c]]) for c, v in self.columns.items()},
        )
        result.validate()
        return result

    # -----------------------------------------------------------------
    # Map / Filter / Reduce
    # -----------------------------------------------------------------

    def map(
        self,
        fn: Callable[[float], float],
        columns: Union[str, Sequence[str], None] = None,
    ) -> 'SeriesFrame':
        """
        Apply `fn` to every value of the given columns (default: all).

        The result only holds the mapped columns; the others are dropped.
        """
        names = self._resolve_columns(columns)
        n = len(self.index)
        out = {
            name: np.fromiter((fn(float(v)) for v in self.columns[name]), dtype="float64", count=n)
            for name in names
        }
        return self._derive(self.index.copy(), out)

    def filter(
        self,
        predicate: Callable[[float], bool],
        columns: Union[str, Sequence[str], None] = None,
    ) -> 'SeriesFrame':
        """
        Keep rows where `predicate` holds for every given column (default: all).

        Kept rows carry all columns, not only the tested ones.
        """
        names = self._resolve_columns(columns)
        n = len(self.index)
        keep = np.ones(n, dtype=bool)
        for name in names:
            keep &= np.fromiter(
                (bool(predicate(float(v))) for v in self.columns[name]), dtype=bool, count=n
            )
        return self._take(keep)

    def reduce(self, fn: Callable[[float, float], float], column: str) -> float:
        """
        Left-fold `fn` over one column, seeded with its first value.
        """
        values = self.get(column)
        if len(values) == 0:
            raise EmptyTableError(f"reduce() over empty column '{column}'")
        return functools.reduce(fn, (float(v) for v in values[1:]), float(values[0]))

    def filter_by_mask(
        self,
        mask: Sequence[bool],
        match_value: bool = True,
        *,
        strict: bool = False,
    ) -> tuple['SeriesFrame', list[int]]:
        """
        Keep rows where mask[i] == match_value.

        Returns:
            tuple: (matching rows, their positions).

        A mask whose length differs from the frame is not an error by default:
        a warning is logged and an empty frame with no positions is returned.
        With strict=True a DimensionMismatchError is raised instead.
        """
        mask = np.asarray(list(mask))
        if len(mask) != len(self.index):
            msg = f"cannot match mask, unequal sizes: frame has {len(self.index)} rows, mask has {len(mask)}"
            if strict:
                raise DimensionMismatchError(msg)
            logger.warning(msg)
            return self._take(slice(0, 0)), []

        positions = np.flatnonzero(mask == match_value)
        return self._take(positions), positions.tolist()
