from typing import Callable, Iterable, Mapping, Union

import numpy as np

from .errors import ColumnNotFoundError, ParameterError


# -------------------------------------------------------------------
# Types
# -------------------------------------------------------------------

# Aggregator: reduces the values of one bucket to a single float
Aggregator = Callable[[np.ndarray], float]

# Per-column request: aggregator name or a custom callable
AggregatorLike = Union[str, Aggregator]

AggregationRequest = Union[str, Mapping[str, AggregatorLike], None]

DEFAULT_AGGREGATOR = "mean"

# Named per-column rules usable in place of a mapping
AGGREGATION_PRESETS: dict[str, dict[str, str]] = {
    "ohlcv": {
        "open": "first",
        "high": "max",
        "low": "min",
        "close": "last",
        "volume": "sum",
    },
}


# -------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------

AGGREGATOR_REGISTRY: dict[str, Aggregator] = {}


def aggregator(name: str, *, overwrite: bool = False):
    """
    Decorator to register an aggregator in the global registry.

    Usage:
        @aggregator("range")
        def _agg_range(values: np.ndarray) -> float:
            return float(values.max() - values.min())

    Args:
        name: Logical identifier used in aggregation mappings.
        overwrite: Allow overwriting an existing aggregator.
    """
    def decorator(fn: Aggregator) -> Aggregator:
        if not overwrite and name in AGGREGATOR_REGISTRY:
            raise ValueError(f"Aggregator '{name}' already registered.")
        AGGREGATOR_REGISTRY[name] = fn
        return fn
    return decorator


def list_registered_aggregators() -> list[str]:
    """Sorted names of every registered aggregator."""
    return sorted(AGGREGATOR_REGISTRY.keys())


def _non_empty(name: str, fn: Aggregator) -> Aggregator:
    """Wrap an aggregator so an empty bucket fails instead of producing NaN."""

    def wrapped(values: np.ndarray) -> float:
        if len(values) == 0:
            raise ParameterError(f"Aggregator '{name}' applied to an empty bucket.")
        return float(fn(values))

    wrapped.__name__ = getattr(fn, "__name__", name)
    return wrapped


def get_aggregator(agg: AggregatorLike) -> Aggregator:
    """
    Turn an aggregator name or callable into a checked reducer.

    Raises:
        ParameterError: unknown aggregator name.
    """
    if callable(agg):
        return _non_empty(getattr(agg, "__name__", "custom"), agg)
    if agg not in AGGREGATOR_REGISTRY:
        raise ParameterError(
            f"Unknown aggregator {agg!r}; expected one of {list_registered_aggregators()}."
        )
    return _non_empty(agg, AGGREGATOR_REGISTRY[agg])


def resolve_aggregators(
    columns: Iterable[str],
    request: AggregationRequest = None,
    *,
    default: AggregatorLike = DEFAULT_AGGREGATOR,
) -> dict[str, Aggregator]:
    """
    Map every column to exactly one reducer.

    `request` is a column -> aggregator mapping, a preset name (e.g. "ohlcv"),
    or None. Columns the request does not mention use `default`.

    Raises:
        ParameterError: unknown preset or aggregator.
        ColumnNotFoundError: the request names a column that does not exist.
    """
    columns = list(columns)

    if request is None:
        mapping: Mapping[str, AggregatorLike] = {}
    elif isinstance(request, str):
        if request not in AGGREGATION_PRESETS:
            raise ParameterError(
                f"Unknown aggregation preset {request!r}; expected one of {sorted(AGGREGATION_PRESETS)}."
            )
        # Presets only cover the columns that are actually present
        mapping = {k: v for k, v in AGGREGATION_PRESETS[request].items() if k in columns}
    else:
        mapping = request

    unknown = [c for c in mapping if c not in columns]
    if unknown:
        raise ColumnNotFoundError(f"Aggregation requested for missing column(s): {unknown}")

    default_fn = get_aggregator(default)
    return {
        col: get_aggregator(mapping[col]) if col in mapping else default_fn
        for col in columns
    }


# -------------------------------------------------------------------
# Base Aggregators
# -------------------------------------------------------------------

@aggregator("sum")
def _agg_sum(values: np.ndarray) -> float:
    return np.sum(values)


@aggregator("mean")
def _agg_mean(values: np.ndarray) -> float:
    return np.mean(values)


@aggregator("median")
def _agg_median(values: np.ndarray) -> float:
    return np.median(values)


@aggregator("first")
def _agg_first(values: np.ndarray) -> float:
    return values[0]


@aggregator("last")
def _agg_last(values: np.ndarray) -> float:
    return values[-1]


@aggregator("min")
def _agg_min(values: np.ndarray) -> float:
    return np.min(values)


@aggregator("max")
def _agg_max(values: np.ndarray) -> float:
    return np.max(values)


@aggregator("count")
def _agg_count(values: np.ndarray) -> float:
    return len(values)


@aggregator("std")
def _agg_std(values: np.ndarray) -> float:
    """Population standard deviation (ddof=0), 0.0 for a single value."""
    return np.std(values)
