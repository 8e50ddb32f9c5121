"""Frame conversion for :meth:`~mbmdr.data.GenotypeData.from_frame`.

Genotype tables often arrive as Polars frames.  They are turned into
pandas at this single boundary; everything after it sees pandas only,
and :class:`~mbmdr.data.GenotypeData` keeps the NumPy arrays pulled out
of that frame.

Polars is an optional extra (``pip install mbmdr[polars]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False


def _as_pandas_frame(obj: DataFrameLike, *, name: str = "frame") -> pd.DataFrame:
    """Return *obj* as a pandas frame.

    pandas input is returned unchanged (no copy).  A Polars
    ``LazyFrame`` is collected before conversion.

    Raises:
        TypeError: For anything that is not a pandas or Polars frame.
    """
    if isinstance(obj, pd.DataFrame):
        return obj

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            obj = obj.collect()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    accepted = "a pandas or Polars frame" if _HAS_POLARS else "a pandas DataFrame"
    msg = f"'{name}' must be {accepted}, got {type(obj).__name__}."
    raise TypeError(msg)
