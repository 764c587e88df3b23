class SeriesFrameError(Exception):
    """Base error for SeriesFrame-related failures."""


class ValidationError(SeriesFrameError, ValueError):
    """Raised when column lengths do not match the index (cannot recover)."""


class OrderingError(SeriesFrameError, ValueError):
    """Raised when a frame is appended before the receiver starts."""


class SchemaError(SeriesFrameError, ValueError):
    """Raised on column-set mismatches and loads that produce no rows."""


class BoundsError(SeriesFrameError, ValueError):
    """Raised for slice bounds of an unknown type or unparsable timestamps."""


class ParameterError(SeriesFrameError, ValueError):
    """Raised for invalid operation parameters (batch size, interval, aggregator...)."""


class DimensionMismatchError(SeriesFrameError, ValueError):
    """Raised by strict mask filtering when mask and frame lengths differ."""


class EmptyTableError(SeriesFrameError, IndexError):
    """Raised when an operation needs more rows than the frame holds."""


class ColumnNotFoundError(SeriesFrameError, KeyError):
    """Raised when a requested column does not exist."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class ReadError(SeriesFrameError, OSError):
    """Raised when a loader or file source cannot be read."""
