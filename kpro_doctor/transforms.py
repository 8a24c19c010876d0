"""Generation-specific reshaping into the unified alternate_1/2/3 layout.

Each transform takes a frame whose rows share one schema label and returns a
new frame. None of them drop rows or touch unrelated columns.
"""

from __future__ import annotations

import re
from typing import Any

import pandas as pd

from kpro_doctor.columns import find_column, is_blank
from kpro_doctor.species_codes import remap_species_codes

ALTERNATE_COLUMNS = ("alternate_1", "alternate_2", "alternate_3")
SPLIT_RE = re.compile(r";\s*")


def split_alternates(value: Any) -> list[str | None]:
    """Split a semicolon-delimited code list, keeping each token's position.

    Blank tokens inside the list stay as ``None`` so later codes keep their
    slot. Trailing blanks (``"LACI;"``) are dropped.
    """
    if is_blank(value):
        return []
    tokens = [token.strip() or None for token in SPLIT_RE.split(str(value))]
    while tokens and tokens[-1] is None:
        tokens.pop()
    return tokens


def _is_code_list(value: Any) -> bool:
    return not is_blank(value) and ";" in str(value)


def _leaked_list(alternate_1: Any, alternate_2: Any) -> Any:
    # alternate_2 only holds the list when alternate_1 does not.
    if not _is_code_list(alternate_1) and _is_code_list(alternate_2):
        return alternate_2
    return alternate_1


def _insert_column(df: pd.DataFrame, loc: int, name: str, values: list[Any]) -> None:
    df.insert(min(loc, len(df.columns)), name, pd.Series(values, index=df.index, dtype=object))


def _ensure_alternate_3(df: pd.DataFrame) -> pd.DataFrame:
    if find_column(df, "alternate_3") is not None:
        return df
    result = df.copy()
    alt2_col = find_column(result, "alternate_2")
    loc = result.columns.get_loc(alt2_col) + 1 if alt2_col is not None else len(result.columns)
    _insert_column(result, loc, "alternate_3", [None] * len(result))
    return result


def transform_v1_to_unified(df: pd.DataFrame) -> pd.DataFrame:
    """Split semicolon-delimited alternates into alternate_1/2/3 and remap codes.

    The source is the legacy ``alternates`` column when present. Without it the
    list leaked into the modern ``alternate_1`` column (or, for rows where only
    that column carries a list, ``alternate_2``). The first three tokens map by
    position onto ``alternate_1/2/3``; the old modern columns are replaced.
    """
    result = df.copy()
    alternates_col = find_column(result, "alternates")
    modern_cols = [find_column(result, name) for name in ALTERNATE_COLUMNS]
    present_modern = [col for col in modern_cols if col is not None]

    if alternates_col is not None:
        sources = result[alternates_col].tolist()
        superseded = [alternates_col, *present_modern]
    else:
        missing = [None] * len(result)
        alt1_values = result[modern_cols[0]].tolist() if modern_cols[0] is not None else missing
        alt2_values = result[modern_cols[1]].tolist() if modern_cols[1] is not None else missing
        sources = [_leaked_list(alt1, alt2) for alt1, alt2 in zip(alt1_values, alt2_values)]
        superseded = present_modern

    token_lists = [split_alternates(value) for value in sources]

    loc = min((result.columns.get_loc(col) for col in superseded), default=len(result.columns))
    result = result.drop(columns=superseded)
    for offset, name in enumerate(ALTERNATE_COLUMNS):
        values = [tokens[offset] if len(tokens) > offset else None for tokens in token_lists]
        _insert_column(result, loc + offset, name, values)

    return remap_species_codes(result)


def transform_v2_to_unified(df: pd.DataFrame) -> pd.DataFrame:
    return remap_species_codes(_ensure_alternate_3(df))


def transform_v3_to_unified(df: pd.DataFrame) -> pd.DataFrame:
    # Already canonical; only the shape needs completing.
    return _ensure_alternate_3(df)
