import json
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

import duckdb
import numpy as np
import pandas as pd

from ..core import SeriesFrame
from ..errors import ParameterError, ReadError, SchemaError, ValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

# Schema parser: file path -> SeriesFrame
SchemaParser = Callable[[Path], SeriesFrame]

DEFAULT_JSON_SCHEMA = "split"
DEFAULT_CSV_SCHEMA = "auto"
SUPPORTED_SUFFIXES = (".csv", ".json")

# Source field -> canonical column
YAHOO_FIELDS = {"Open": "open", "High": "high", "Low": "low", "Close": "close", "Volume": "volume"}
GENERIC_FIELDS = {"open": "open", "high": "high", "low": "low", "close": "close", "volume": "volume"}


# -------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------

SCHEMA_REGISTRY: dict[str, SchemaParser] = {}


def schema(name: str, *, overwrite: bool = False):
    """
    Decorator to register a file schema parser.

    Usage:
        @schema("mybroker")
        def _parse_mybroker(path: Path) -> SeriesFrame:
            ...

    Args:
        name: Schema key passed to load_file(..., schema=name).
        overwrite: Allow overwriting an existing schema.
    """
    def decorator(parser: SchemaParser) -> SchemaParser:
        if not overwrite and name in SCHEMA_REGISTRY:
            raise ValueError(f"Schema '{name}' already registered.")
        SCHEMA_REGISTRY[name] = parser
        return parser
    return decorator


def list_registered_schemas() -> list[str]:
    return sorted(SCHEMA_REGISTRY.keys())


# -------------------------------------------------------------------
# Readers
# -------------------------------------------------------------------

def _read_json(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise ReadError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ReadError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def _read_csv(path: Path) -> pd.DataFrame:
    try:
        return pd.read_csv(path)
    except OSError as exc:
        raise ReadError(f"Cannot read {path}: {exc}") from exc
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ReadError(f"Invalid CSV in {path}: {exc}") from exc


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _numeric(path: Path, name: str, values) -> np.ndarray:
    try:
        return pd.to_numeric(pd.Series(values)).to_numpy(dtype="float64", na_value=np.nan)
    except (TypeError, ValueError) as exc:
        raise SchemaError(f"Column '{name}' in {path} is not numeric: {exc}") from exc


def _record_frame(path: Path, date_field: str, fields: dict[str, str]) -> SeriesFrame:
    """
    Read a flat OHLCV layout: CSV rows, or a column-oriented JSON object.
    """
    if path.suffix.lower() == ".csv":
        df = _read_csv(path)
    else:
        try:
            df = pd.DataFrame(_read_json(path))
        except ValueError as exc:
            raise SchemaError(f"Ragged columns in {path}: {exc}") from exc

    if date_field not in df.columns:
        raise SchemaError(
            f"load failed, probably wrong schema provided: no '{date_field}' field in {path}"
        )

    columns = {
        target: _numeric(path, source, df[source])
        for source, target in fields.items()
        if source in df.columns
    }
    try:
        return SeriesFrame(index=df[date_field], columns=columns)
    except ValidationError as exc:
        raise SchemaError(f"Bad '{date_field}' field in {path}: {exc}") from exc


# -------------------------------------------------------------------
# Schemas
# -------------------------------------------------------------------

@schema("yahoo")
def _parse_yahoo(path: Path) -> SeriesFrame:
    """Yahoo finance export: Date, Open, High, Low, Close, Volume."""
    return _record_frame(path, "Date", YAHOO_FIELDS)


@schema("generic")
def _parse_generic(path: Path) -> SeriesFrame:
    """Lowercase tohlcv: timestamp, open, high, low, close, volume."""
    return _record_frame(path, "timestamp", GENERIC_FIELDS)


def _nested_parser(index_key: str, columns_key: str) -> SchemaParser:
    """JSON object holding an index list and a {name: values} mapping."""

    def parse(path: Path) -> SeriesFrame:
        if path.suffix.lower() != ".json":
            raise SchemaError(f"Nested schemas only read JSON files, got {path}")
        data = _read_json(path)
        if index_key not in data or columns_key not in data:
            raise SchemaError(
                f"load failed, probably wrong schema provided: expected '{index_key}' and "
                f"'{columns_key}' in {path}"
            )
        columns = data[columns_key]
        if not isinstance(columns, dict):
            raise SchemaError(f"'{columns_key}' in {path} must be an object of columns")
        try:
            return SeriesFrame(
                index=data[index_key],
                columns={name: _numeric(path, name, values) for name, values in columns.items()},
            )
        except ValidationError as exc:
            raise SchemaError(f"Malformed '{columns_key}' in {path}: {exc}") from exc

    return parse


schema("split")(_nested_parser("index", "columns"))
schema("split0")(_nested_parser("TimeIndex", "Columns"))
schema("split1")(_nested_parser("timestamp", "columns"))


@schema("auto")
def _parse_auto(path: Path) -> SeriesFrame:
    """
    CSV with sniffed types.

    The first column whose name contains 'date' or 'time' (case-insensitive)
    is the index, the first column otherwise. Every other column is numeric.
    """
    if path.suffix.lower() != ".csv":
        raise SchemaError(f"The auto schema only reads CSV files, got {path}")

    con = duckdb.connect(database=":memory:")
    try:
        df = con.execute(
            f"SELECT * FROM read_csv_auto({_quote_literal(str(path))}, header=true)"
        ).fetchdf()
    except duckdb.Error as exc:
        raise ReadError(f"Cannot read {path}: {exc}") from exc
    finally:
        con.close()

    df.columns = [str(c).lower() for c in df.columns]
    if len(df.columns) == 0:
        return SeriesFrame()

    index_col = next((c for c in df.columns if "date" in c or "time" in c), df.columns[0])
    columns = {
        name: _numeric(path, name, df[name])
        for name in df.columns
        if name != index_col
    }
    try:
        return SeriesFrame(index=df[index_col], columns=columns)
    except ValidationError as exc:
        raise SchemaError(f"Bad index column '{index_col}' in {path}: {exc}") from exc


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------

def load_file(filepath: PathLike, schema: Optional[str] = None) -> SeriesFrame:
    """
    Load one CSV or JSON file into a SeriesFrame.

    Args:
        filepath: Path to a .csv or .json file.
        schema: Registered schema name. Defaults to 'auto' for CSV and
            'split' for JSON.

    Returns:
        SeriesFrame: Loaded SeriesFrame.

    Raises:
        ParameterError: Unsupported extension or unknown schema.
        ReadError: Missing or unreadable file.
        SchemaError: The schema does not fit the file, or no rows were read.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ParameterError(f"Unsupported file type {suffix!r}; expected one of {SUPPORTED_SUFFIXES}")
    if not path.is_file():
        raise ReadError(f"No such file: {path}")

    name = schema or (DEFAULT_CSV_SCHEMA if suffix == ".csv" else DEFAULT_JSON_SCHEMA)
    if name not in SCHEMA_REGISTRY:
        raise ParameterError(f"Unknown schema {name!r}; expected one of {list_registered_schemas()}")

    logger.debug("loading %s with schema %r", path, name)
    frame = SCHEMA_REGISTRY[name](path)
    if len(frame) == 0:
        raise SchemaError(f"load failed for {path}, probably wrong schema provided ({name!r})")
    return frame


def load_directory(directory: PathLike, schema: Optional[str] = None) -> SeriesFrame:
    """
    Load every .csv/.json file of `directory` in name order and append them.

    Raises:
        ReadError: `directory` is not a directory.
        OrderingError / SchemaError: Files cannot be appended in name order.
    """
    root = Path(directory)
    if not root.is_dir():
        raise ReadError(f"Not a directory: {root}")

    frame = SeriesFrame()
    for path in sorted(root.iterdir()):
        if not path.is_file() or path.suffix.lower() not in SUPPORTED_SUFFIXES:
            continue
        frame = frame.append(load_file(path, schema))
    logger.debug("loaded %d rows from %s", len(frame), root)
    return frame
