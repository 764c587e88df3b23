from typing import TYPE_CHECKING, Optional

import math

from rich import box
from rich.console import Console
from rich.table import Table

from .errors import ParameterError

if TYPE_CHECKING:
    from .core import SeriesFrame

# Rows shown at each end before eliding the middle
DEFAULT_DEPTH = 5

ELISION = "..."


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    return f"{value:.6g}"


def _rows(frame: "SeriesFrame", names: list[str]) -> list[list[str]]:
    return [
        [str(point.index)] + [_format_value(point.columns[name]) for name in names]
        for point in frame.iter_points()
    ]


def build_table(
    frame: "SeriesFrame",
    depth: int = DEFAULT_DEPTH,
    *,
    title: Optional[str] = None,
) -> Table:
    """
    Build a rich Table for `frame`.

    All rows are shown when len(frame) <= 2 * depth; otherwise the first and
    last `depth` rows with an elision row between them.

    Args:
        frame: SeriesFrame to display (read-only).
        depth: Rows to show at each end.
        title: Optional table title.

    Returns:
        Table: Renderable rich table.
    """
    if depth < 0:
        raise ParameterError(f"depth must be >= 0, got {depth}")

    names = frame.list_columns()
    table = Table(title=title, box=box.SIMPLE_HEAD, show_header=True, header_style="bold")
    table.add_column("timestamp", no_wrap=True)
    for name in names:
        table.add_column(name, justify="right")

    if len(frame) <= 2 * depth:
        for row in _rows(frame, names):
            table.add_row(*row)
        return table

    for row in _rows(frame.slice(0, depth), names):
        table.add_row(*row)
    table.add_row(*[ELISION] * (len(names) + 1))
    for row in _rows(frame.slice(-1 - depth, -1), names):
        table.add_row(*row)
    return table


def render(
    frame: "SeriesFrame",
    depth: int = DEFAULT_DEPTH,
    *,
    console: Optional[Console] = None,
    title: Optional[str] = None,
) -> Table:
    """Print `frame` (see build_table) and return the rendered table."""
    table = build_table(frame, depth, title=title)
    (console or Console()).print(table)
    return table
