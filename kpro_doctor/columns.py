"""Case-insensitive column helpers shared by every standardization step."""

from __future__ import annotations

import re
from typing import Any, Iterable

import pandas as pd

from kpro_doctor.errors import MissingColumnError

SPECIES_CODE_COLUMNS = ("auto_id", "alternate_1", "alternate_2", "alternate_3")
LABEL_COLUMN = "schema_version"
LEGACY_COLUMNS = ("alternates", LABEL_COLUMN)

_NON_WORD_RE = re.compile(r"[^0-9a-z]+")


def find_column(df: pd.DataFrame, name: str) -> str | None:
    target = name.lower()
    for column in df.columns:
        if str(column).lower() == target:
            return column
    return None


def require_column(df: pd.DataFrame, name: str, *, source_hint: str | None = None) -> str:
    column = find_column(df, name)
    if column is None:
        raise MissingColumnError(
            name,
            available=[str(col) for col in df.columns],
            source_hint=source_hint,
        )
    return column


def drop_columns(df: pd.DataFrame, names: Iterable[str]) -> pd.DataFrame:
    wanted = {name.lower() for name in names}
    present = [column for column in df.columns if str(column).lower() in wanted]
    if not present:
        return df
    return df.drop(columns=present)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(value, str) and not value.strip()


def clean_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase snake_case headers; collisions get _2, _3 suffixes."""
    seen: dict[str, int] = {}
    renamed = []
    for position, column in enumerate(df.columns, start=1):
        base = _NON_WORD_RE.sub("_", str(column).strip().lower()).strip("_")
        if not base:
            base = f"x{position}"
        elif base[0].isdigit():
            base = f"x{base}"
        count = seen.get(base, 0) + 1
        seen[base] = count
        renamed.append(base if count == 1 else f"{base}_{count}")
    result = df.copy()
    result.columns = renamed
    return result
