import pandas as pd
import pytest
from rich.console import Console

from seriesframe import ParameterError, SeriesFrame, render
from seriesframe.display import ELISION, build_table


def make_frame(n):
    idx = pd.date_range("2024-01-01", periods=n, freq="h", tz="UTC")
    return SeriesFrame.from_data(idx, {"close": [float(i) for i in range(n)], "volume": [1.0] * n})


def recording_console():
    return Console(record=True, width=160, color_system=None)


def test_short_frame_shows_every_row():
    table = build_table(make_frame(10), depth=5)
    assert table.row_count == 10
    assert [c.header for c in table.columns] == ["timestamp", "close", "volume"]


def test_long_frame_is_elided():
    console = recording_console()
    table = render(make_frame(12), depth=5, console=console)

    # 5 head rows, the elision row, 5 tail rows
    assert table.row_count == 11
    text = console.export_text()
    assert ELISION in text
    assert "2024-01-01 00:00:00" in text
    assert "2024-01-01 04:00:00" in text
    assert "2024-01-01 07:00:00" in text
    assert "2024-01-01 11:00:00" in text
    assert "2024-01-01 05:00:00" not in text
    assert "2024-01-01 06:00:00" not in text


def test_depth_zero_and_negative():
    assert build_table(make_frame(0), depth=0).row_count == 0
    assert build_table(make_frame(3), depth=0).row_count == 1
    with pytest.raises(ParameterError):
        build_table(make_frame(3), depth=-1)


def test_nan_and_title():
    frame = SeriesFrame.from_data(["2024-01-01"], {"x": [float("nan")]})
    console = recording_console()
    render(frame, console=console, title="prices")
    text = console.export_text()
    assert "NaN" in text
    assert "prices" in text


def test_print_does_not_modify(capsys):
    frame = make_frame(4)
    before = frame.copy()
    frame.print(depth=1)
    assert "timestamp" in capsys.readouterr().out
    assert frame == before
