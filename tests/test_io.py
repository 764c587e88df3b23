import json

import numpy as np
import pandas as pd
import pytest

from seriesframe import OrderingError, ParameterError, ReadError, SchemaError, SeriesFrame
from seriesframe.io import list_registered_schemas, load_directory, load_file, schema
from seriesframe.io.files import SCHEMA_REGISTRY


YAHOO_CSV = """Date,Open,High,Low,Close,Adj Close,Volume
2024-01-02,100.0,102.0,99.0,101.0,101.0,1000
2024-01-03,101.0,103.0,100.0,102.5,102.5,1200
2024-01-04,102.5,104.0,101.5,103.0,103.0,900
"""


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def split_payload(stamps, values):
    return {"index": stamps, "columns": {"price": values}}


# ---------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------

def test_builtin_schemas_registered():
    assert set(list_registered_schemas()) >= {"yahoo", "generic", "split", "split0", "split1", "auto"}


def test_register_custom_schema(tmp_path):
    try:
        @schema("semicolon")
        def _parse_semicolon(path):
            df = pd.read_csv(path, sep=";")
            return SeriesFrame.from_data(df["when"], {"v": df["v"]})

        src = write(tmp_path / "data.csv", "when;v\n2024-01-01;1\n2024-01-02;2\n")
        frame = load_file(src, schema="semicolon")
        np.testing.assert_array_equal(frame.columns["v"], [1.0, 2.0])

        with pytest.raises(ValueError):
            schema("semicolon")(_parse_semicolon)
    finally:
        SCHEMA_REGISTRY.pop("semicolon", None)


# ---------------------------------------------------------------------
# Record schemas
# ---------------------------------------------------------------------

def test_yahoo_csv(tmp_path):
    frame = load_file(write(tmp_path / "spy.csv", YAHOO_CSV), schema="yahoo")

    assert len(frame) == 3
    assert frame.list_columns() == ["open", "high", "low", "close", "volume"]
    assert frame.start() == pd.Timestamp("2024-01-02", tz="UTC")
    np.testing.assert_array_equal(frame.columns["volume"], [1000.0, 1200.0, 900.0])


def test_yahoo_json(tmp_path):
    payload = {
        "Date": ["2024-01-02", "2024-01-03"],
        "Open": [1.0, 2.0],
        "Close": [1.5, 2.5],
    }
    frame = load_file(write_json(tmp_path / "spy.json", payload), schema="yahoo")
    assert frame.list_columns() == ["open", "close"]
    np.testing.assert_array_equal(frame.columns["close"], [1.5, 2.5])


def test_generic_csv_with_epoch_seconds(tmp_path):
    text = "timestamp,open,high,low,close,volume\n1704067200,1,2,0.5,1.5,10\n1704067260,1.5,2.5,1,2,20\n"
    frame = load_file(write(tmp_path / "btc.csv", text), schema="generic")

    assert frame.start() == pd.Timestamp("2024-01-01 00:00", tz="UTC")
    assert frame.end() == pd.Timestamp("2024-01-01 00:01", tz="UTC")
    np.testing.assert_array_equal(frame.columns["close"], [1.5, 2.0])


def test_wrong_record_schema(tmp_path):
    src = write(tmp_path / "spy.csv", YAHOO_CSV)
    with pytest.raises(SchemaError):
        load_file(src, schema="generic")


def test_non_numeric_column(tmp_path):
    text = "Date,Open\n2024-01-02,abc\n"
    with pytest.raises(SchemaError):
        load_file(write(tmp_path / "bad.csv", text), schema="yahoo")


@pytest.mark.parametrize(
    "name, text",
    [
        ("yahoo", "Date,Open\n2024-01-02,1.0\n,2.0\n"),
        ("generic", "timestamp,open\n1704067200,1.0\n,2.0\n"),
    ],
)
def test_empty_date_cell(tmp_path, name, text):
    src = write(tmp_path / "gap.csv", text)
    with pytest.raises(SchemaError):
        load_file(src, schema=name)


def test_auto_schema_empty_date_cell(tmp_path):
    src = write(tmp_path / "gap.csv", "date,a\n2024-01-01,1.5\n,2.5\n")
    with pytest.raises(SchemaError):
        load_file(src)


def test_header_only_file_has_no_rows(tmp_path):
    src = write(tmp_path / "empty.csv", "Date,Open,High,Low,Close,Volume\n")
    with pytest.raises(SchemaError):
        load_file(src, schema="yahoo")


# ---------------------------------------------------------------------
# Nested JSON schemas
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "name, index_key, columns_key",
    [
        ("split", "index", "columns"),
        ("split0", "TimeIndex", "Columns"),
        ("split1", "timestamp", "columns"),
    ],
)
def test_nested_json_schemas(tmp_path, name, index_key, columns_key):
    payload = {
        index_key: ["2024-01-01T00:00:00Z", "2024-01-01T00:01:00Z"],
        columns_key: {"price": [1.0, 2.0], "volume": [5, 6]},
    }
    frame = load_file(write_json(tmp_path / "x.json", payload), schema=name)
    assert frame.list_columns() == ["price", "volume"]
    np.testing.assert_array_equal(frame.columns["volume"], [5.0, 6.0])


def test_json_defaults_to_split(tmp_path):
    src = write_json(tmp_path / "x.json", split_payload(["2024-01-01"], [3.0]))
    frame = load_file(src)
    np.testing.assert_array_equal(frame.columns["price"], [3.0])


def test_nested_schema_errors(tmp_path):
    src = write_json(tmp_path / "x.json", split_payload(["2024-01-01"], [3.0]))
    with pytest.raises(SchemaError):
        load_file(src, schema="split0")

    ragged = write_json(
        tmp_path / "ragged.json",
        {"index": ["2024-01-01", "2024-01-02"], "columns": {"price": [1.0]}},
    )
    with pytest.raises(SchemaError):
        load_file(ragged)

    not_object = write_json(tmp_path / "list.json", [1, 2, 3])
    with pytest.raises(SchemaError):
        load_file(not_object)

    broken = write(tmp_path / "broken.json", "{not json")
    with pytest.raises(ReadError):
        load_file(broken)

    csv = write(tmp_path / "x.csv", "index,price\n2024-01-01,1\n")
    with pytest.raises(SchemaError):
        load_file(csv, schema="split")


# ---------------------------------------------------------------------
# Auto CSV schema
# ---------------------------------------------------------------------

def test_auto_schema_picks_date_column(tmp_path):
    text = "Symbol_Id,DateTime,Price,Qty\n7,2024-01-01 00:00:00,1.5,10\n7,2024-01-01 00:01:00,2.5,20\n"
    frame = load_file(write(tmp_path / "trades.csv", text))

    assert frame.list_columns() == ["symbol_id", "price", "qty"]
    assert frame.end() == pd.Timestamp("2024-01-01 00:01", tz="UTC")
    np.testing.assert_array_equal(frame.columns["price"], [1.5, 2.5])


def test_auto_schema_falls_back_to_first_column(tmp_path):
    text = "when,value\n2024-01-01 00:00:00,1.0\n2024-01-02 00:00:00,2.0\n"
    frame = load_file(write(tmp_path / "x.csv", text), schema="auto")
    assert frame.list_columns() == ["value"]
    assert frame.start() == pd.Timestamp("2024-01-01", tz="UTC")


def test_auto_schema_empty_cells_are_nan(tmp_path):
    text = "date,a,b\n2024-01-01,1.5,\n2024-01-02,2.5,3.5\n"
    frame = load_file(write(tmp_path / "gaps.csv", text))
    assert np.isnan(frame.columns["b"][0])
    assert frame.columns["b"][1] == 3.5


def test_auto_schema_only_reads_csv(tmp_path):
    src = write_json(tmp_path / "x.json", split_payload(["2024-01-01"], [3.0]))
    with pytest.raises(SchemaError):
        load_file(src, schema="auto")


# ---------------------------------------------------------------------
# Path handling
# ---------------------------------------------------------------------

def test_missing_file(tmp_path):
    with pytest.raises(ReadError):
        load_file(tmp_path / "nope.csv")
    # ReadError is an OSError
    with pytest.raises(OSError):
        load_file(tmp_path / "nope.json")


def test_unsupported_extension(tmp_path):
    src = write(tmp_path / "x.txt", YAHOO_CSV)
    with pytest.raises(ParameterError):
        load_file(src)


def test_unknown_schema(tmp_path):
    src = write(tmp_path / "spy.csv", YAHOO_CSV)
    with pytest.raises(ParameterError):
        load_file(src, schema="bloomberg")


def test_from_file(tmp_path):
    src = write(tmp_path / "spy.csv", YAHOO_CSV)
    assert SeriesFrame.from_file(src, schema="yahoo") == load_file(str(src), schema="yahoo")


# ---------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------

def test_load_directory_appends_in_name_order(tmp_path):
    write_json(tmp_path / "2024-01-02.json", split_payload(["2024-01-02", "2024-01-02 12:00"], [3.0, 4.0]))
    write_json(tmp_path / "2024-01-01.json", split_payload(["2024-01-01", "2024-01-01 12:00"], [1.0, 2.0]))
    write(tmp_path / "README.txt", "not data")
    (tmp_path / "nested").mkdir()

    frame = load_directory(tmp_path)
    np.testing.assert_array_equal(frame.columns["price"], [1.0, 2.0, 3.0, 4.0])
    assert frame.validate().ok

    assert SeriesFrame.from_directory(tmp_path) == frame


def test_load_directory_ordering(tmp_path):
    write_json(tmp_path / "a.json", split_payload(["2024-02-01"], [1.0]))
    write_json(tmp_path / "b.json", split_payload(["2024-01-01"], [2.0]))
    with pytest.raises(OrderingError):
        load_directory(tmp_path)


def test_load_directory_errors(tmp_path):
    src = write(tmp_path / "spy.csv", YAHOO_CSV)
    with pytest.raises(ReadError):
        load_directory(src)
    with pytest.raises(ReadError):
        load_directory(tmp_path / "missing")
