"""
Reduce the nested attribute tables of unioned polygons to one value each.

``self_union`` stores, for every merged polygon, a DataFrame holding the
attribute rows of the polygons that compose it (the ``union_df`` column).
``get_poly_attribute`` turns one column of those nested tables into a single
value per merged polygon using any reduction function (sum, max, ...).
"""

import numbers
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from bcmaps.errors import InvalidInputError, ReductionTypeError, UnknownColumnError
from bcmaps.logging_cfg import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Numeric:
    pass


@dataclass(frozen=True)
class Text:
    pass


@dataclass(frozen=True)
class Boolean:
    pass


@dataclass(frozen=True)
class Categorical:
    levels: Tuple
    ordered: bool = False


ColumnType = Union[Numeric, Text, Boolean, Categorical]


def column_type(values: pd.Series) -> ColumnType:
    """Classify a column by its dtype."""
    dtype = values.dtype
    if isinstance(dtype, pd.CategoricalDtype):
        return Categorical(tuple(dtype.categories), bool(dtype.ordered))
    if pd.api.types.is_bool_dtype(dtype):
        return Boolean()
    if pd.api.types.is_numeric_dtype(dtype):
        return Numeric()
    return Text()


def _is_missing(value) -> bool:
    return value is None or value is pd.NA or (isinstance(value, (float, np.floating)) and np.isnan(value))


def _check_native(value, ctype: ColumnType, col: str):
    if _is_missing(value):
        return None
    if isinstance(ctype, Numeric) and isinstance(value, numbers.Real):
        return value
    if isinstance(ctype, Boolean) and isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(ctype, Text) and isinstance(value, str):
        return value
    raise ReductionTypeError(
        f"Reducing '{col}' must give a {type(ctype).__name__.lower()} scalar, "
        f"got {type(value).__name__}"
    )


def _check_level(code, ctype: Categorical, col: str):
    if _is_missing(code):
        return None
    if isinstance(code, (bool, np.bool_)) or not isinstance(code, numbers.Real) \
            or int(code) != code:
        raise ReductionTypeError(
            f"Reducing categorical '{col}' must give a level position, got {code!r}"
        )
    code = int(code)
    # -1 is the code pandas uses for a missing value
    if code == -1:
        return None
    if not 0 <= code < len(ctype.levels):
        raise ReductionTypeError(
            f"Reducing categorical '{col}' gave position {code}, "
            f"outside its {len(ctype.levels)} levels"
        )
    return ctype.levels[code]


def get_poly_attribute(
    x: Sequence[pd.DataFrame],
    col: str,
    fun: Callable,
    *args,
    **kwargs
) -> pd.Series:
    """
    Get or calculate one attribute per merged polygon from nested data frames.

    Args:
        x: The nested data frames, e.g. the ``union_df`` column produced by
            ``self_union``
        col: Column of the nested data frames to reduce
        fun: Function turning the column values of one nested frame into a
            single value
        *args, **kwargs: Passed on to ``fun`` on every call

    Returns:
        A Series with one value per element of ``x``, in the same order.

    The column type is read from the first nested frame only; every frame is
    assumed to hold the same dtype for ``col``. Categorical columns are handed
    to ``fun`` as their integer category codes (so ``max`` picks the highest
    level) and the results are mapped back onto the original categories.
    """
    if not isinstance(x, (list, tuple, pd.Series)) or len(x) == 0:
        raise InvalidInputError("x must be a non-empty list, or list-column in a data frame")
    if not all(isinstance(frame, pd.DataFrame) for frame in x):
        raise InvalidInputError("x must be a list of data frames")

    frames = list(x)
    if col not in frames[0].columns:
        raise UnknownColumnError(f"{col} is not a column in the data frames in x")
    if not callable(fun):
        raise InvalidInputError("fun must be a function")

    ctype = column_type(frames[0][col])
    index = x.index if isinstance(x, pd.Series) else pd.RangeIndex(len(frames))
    logger.debug(f"Reducing '{col}' ({ctype}) over {len(frames)} nested frames")

    if isinstance(ctype, Categorical):
        labels = []
        for frame in frames:
            codes = frame[col].cat.codes.reset_index(drop=True)
            labels.append(_check_level(_scalar(fun(codes, *args, **kwargs), col), ctype, col))
        values = pd.Categorical(labels, categories=list(ctype.levels), ordered=ctype.ordered)
        return pd.Series(values, index=index, name=col)

    results = []
    for frame in frames:
        values = frame[col].reset_index(drop=True)
        results.append(_check_native(_scalar(fun(values, *args, **kwargs), col), ctype, col))

    if isinstance(ctype, Boolean) and None not in results:
        return pd.Series(results, index=index, name=col, dtype=bool)
    return pd.Series(results, index=index, name=col)


def _scalar(value, col: str):
    if not pd.api.types.is_scalar(value):
        raise ReductionTypeError(
            f"Reducing '{col}' must give a single value, got {type(value).__name__}"
        )
    return value
