"""Row-level detection of the KPro export generation that produced each record.

A single combined dataset can hold rows from several Kaleidoscope Pro
generations when detectors were upgraded mid-study, so every row is labelled
on its own:

1. An ``alternates`` column anywhere in the frame labels every row V1.
2. A semicolon in ``alternate_1`` or ``alternate_2`` labels the row V1
   (partially migrated exports where the legacy list leaked into the modern
   column).
3. Otherwise the trimmed length of ``auto_id`` decides: 4 is V2, 6 is V3,
   anything else is UNKNOWN.

Detection never raises on row content. Ambiguous rows become UNKNOWN.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from typing import Any

import pandas as pd

from kpro_doctor.columns import LABEL_COLUMN, find_column, is_blank, require_column


class SchemaLabel(str, Enum):
    V1_LEGACY_SINGLE_COLUMN = "v1_legacy_single_column"
    V2_TRANSITIONAL_SHORT_CODE = "v2_transitional_4letter"
    V3_MODERN_LONG_CODE = "v3_modern_6letter"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "SchemaLabel":
        if isinstance(value, cls):
            return value
        if is_blank(value):
            return cls.UNKNOWN
        text = str(value).strip().lower()
        for label in cls:
            if text in (label.value, label.name.lower()):
                return label
        return cls.UNKNOWN


# Recombination and reporting order.
GROUP_ORDER = (
    SchemaLabel.V1_LEGACY_SINGLE_COLUMN,
    SchemaLabel.V2_TRANSITIONAL_SHORT_CODE,
    SchemaLabel.V3_MODERN_LONG_CODE,
    SchemaLabel.UNKNOWN,
)

SHORT_CODE_LENGTH = 4
LONG_CODE_LENGTH = 6


def _has_semicolon(value: Any) -> bool:
    return not is_blank(value) and ";" in str(value)


def classify_row(auto_id: Any, alternate_1: Any = None, alternate_2: Any = None) -> SchemaLabel:
    if _has_semicolon(alternate_1) or _has_semicolon(alternate_2):
        return SchemaLabel.V1_LEGACY_SINGLE_COLUMN
    if is_blank(auto_id):
        return SchemaLabel.UNKNOWN
    length = len(str(auto_id).strip())
    if length == SHORT_CODE_LENGTH:
        return SchemaLabel.V2_TRANSITIONAL_SHORT_CODE
    if length == LONG_CODE_LENGTH:
        return SchemaLabel.V3_MODERN_LONG_CODE
    return SchemaLabel.UNKNOWN


def classify_rows(df: pd.DataFrame) -> list[SchemaLabel]:
    if find_column(df, "alternates") is not None:
        return [SchemaLabel.V1_LEGACY_SINGLE_COLUMN] * len(df)

    auto_col = find_column(df, "auto_id")
    if auto_col is None:
        return [SchemaLabel.UNKNOWN] * len(df)

    alt1_col = find_column(df, "alternate_1")
    alt2_col = find_column(df, "alternate_2")
    missing = [None] * len(df)
    auto_values = df[auto_col].tolist()
    alt1_values = df[alt1_col].tolist() if alt1_col is not None else missing
    alt2_values = df[alt2_col].tolist() if alt2_col is not None else missing
    return [
        classify_row(auto_id, alt1, alt2)
        for auto_id, alt1, alt2 in zip(auto_values, alt1_values, alt2_values)
    ]


NO_AUTO_ID_WARNING = "No auto_id column found - all rows classified as unknown"


def detection_warnings(df: pd.DataFrame) -> list[str]:
    if find_column(df, "alternates") is None and find_column(df, "auto_id") is None:
        return [NO_AUTO_ID_WARNING]
    return []


def detect_row_schema(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``df`` with a ``schema_version`` label on every row.

    An existing label column (any case) is replaced. No other column changes.
    """
    labels = classify_rows(df)
    result = df.copy()
    existing = find_column(result, LABEL_COLUMN)
    if existing is not None:
        result = result.drop(columns=[existing])
    result[LABEL_COLUMN] = pd.Series([label.value for label in labels], index=result.index, dtype=object)
    return result


def row_labels(df: pd.DataFrame, *, source_hint: str | None = "detect_row_schema()") -> list[SchemaLabel]:
    column = require_column(df, LABEL_COLUMN, source_hint=source_hint)
    return [SchemaLabel.parse(value) for value in df[column].tolist()]


def count_labels(labels: list[SchemaLabel]) -> dict[str, int]:
    counts = Counter(labels)
    return {label.value: counts.get(label, 0) for label in GROUP_ORDER}


def get_dominant_schema(df: pd.DataFrame) -> SchemaLabel | None:
    labels = row_labels(df)
    if not labels:
        return None
    counts = Counter(labels)
    return max(GROUP_ORDER, key=lambda label: (counts.get(label, 0), -GROUP_ORDER.index(label)))


def get_schema_summary(df: pd.DataFrame) -> pd.DataFrame:
    labels = row_labels(df)
    total = len(labels)
    rows = [
        {
            "schema_version": label,
            "count": count,
            "percent": round(100 * count / total, 1) if total else 0.0,
        }
        for label, count in count_labels(labels).items()
        if count
    ]
    return pd.DataFrame(rows, columns=["schema_version", "count", "percent"])
