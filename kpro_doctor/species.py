"""Derive the single analysis ``species`` column from manual and automatic IDs."""

from __future__ import annotations

from typing import Any

import pandas as pd

from kpro_doctor.columns import drop_columns, find_column, is_blank, require_column

SPECIES_COLUMN = "species"
NO_ID = "NoID"
UNIDENTIFIED_MARKERS = {"noid", "unknown"}


def is_identifiable(value: Any) -> bool:
    if is_blank(value):
        return False
    return str(value).strip().lower() not in UNIDENTIFIED_MARKERS


def resolve_species(manual_id: Any, auto_id: Any) -> Any:
    # Expert review always overrides the automatic classifier.
    if is_identifiable(manual_id):
        return manual_id
    if is_identifiable(auto_id):
        return auto_id
    return NO_ID


def create_unified_species_column(df: pd.DataFrame) -> pd.DataFrame:
    auto_col = require_column(df, "auto_id", source_hint="standardize_schema()")
    manual_col = find_column(df, "manual_id")
    auto_values = df[auto_col].tolist()
    manual_values = df[manual_col].tolist() if manual_col is not None else [None] * len(df)

    result = drop_columns(df.copy(), [SPECIES_COLUMN])
    result[SPECIES_COLUMN] = pd.Series(
        [resolve_species(manual, auto) for manual, auto in zip(manual_values, auto_values)],
        index=result.index,
        dtype=object,
    )
    return result
