"""Utilities to work with Pandas data frames"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from typing import Any, Optional

import pandas as pd


def as_df(data: Collection[dict[Any, Any]], *, column_names: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """Generates a new Pandas `DataFrame` from a collection of dictionaries.

    Each dictionary corresponds to one row of the dataframe. All dictionaries have to consist of exactly the same key-value
    pairs. Each key becomes a column in the dataframe. The precise columns are inferred from the first dictionary in the
    collection, unless `column_names` are given explicitly. The latter is mostly useful to obtain a properly shaped, but empty
    dataframe if there is no data at all.
    """
    if not data:
        return pd.DataFrame(columns=list(column_names)) if column_names is not None else pd.DataFrame()

    columns = list(column_names) if column_names is not None else list(next(iter(data)).keys())
    df_container: dict[str, list[Any]] = {col: [] for col in columns}
    for row in data:
        for col in columns:
            df_container[col].append(row[col])
    return pd.DataFrame(df_container)
