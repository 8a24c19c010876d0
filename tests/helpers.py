from __future__ import annotations

from typing import Any

import pandas as pd


def column_values(df: pd.DataFrame, column: str) -> list[Any]:
    """Column values with every pandas missing marker normalised to None."""
    return [None if pd.isna(value) else value for value in df[column].tolist()]
