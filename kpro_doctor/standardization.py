"""Group-transform-recombine orchestration for mixed-generation KPro data.

Rows are bucketed by their ``schema_version`` label, each non-empty bucket is
sent through the matching generation transform, and the buckets are
concatenated in the fixed order V1, V2, V3, UNKNOWN. Row order is kept within
a bucket only, unless ``preserve_order`` asks for the input order back.
"""

from __future__ import annotations

from typing import Any, Callable

import pandas as pd

from kpro_doctor.columns import LEGACY_COLUMNS, drop_columns
from kpro_doctor.harmonize import harmonize_column_names
from kpro_doctor.schema_detection import (
    GROUP_ORDER,
    SchemaLabel,
    count_labels,
    detect_row_schema,
    detection_warnings,
    row_labels,
)
from kpro_doctor.transforms import (
    transform_v1_to_unified,
    transform_v2_to_unified,
    transform_v3_to_unified,
)

TRANSFORMS: dict[SchemaLabel, Callable[[pd.DataFrame], pd.DataFrame]] = {
    SchemaLabel.V1_LEGACY_SINGLE_COLUMN: transform_v1_to_unified,
    SchemaLabel.V2_TRANSITIONAL_SHORT_CODE: transform_v2_to_unified,
    SchemaLabel.V3_MODERN_LONG_CODE: transform_v3_to_unified,
}


def group_row_positions(labels: list[SchemaLabel]) -> dict[SchemaLabel, list[int]]:
    buckets: dict[SchemaLabel, list[int]] = {label: [] for label in GROUP_ORDER}
    for position, label in enumerate(labels):
        buckets[label].append(position)
    return buckets


def standardize_schema(
    df: pd.DataFrame,
    *,
    classify: bool = False,
    preserve_order: bool = False,
) -> dict[str, Any]:
    """Transform every generation group into the unified schema.

    Args:
        df:             Records carrying a ``schema_version`` label per row.
        classify:       Run ``detect_row_schema`` first instead of requiring
                        existing labels.
        preserve_order: Restore input row order after recombination.

    Returns:
        dict with keys: dataframe, label_counts, unknown_rows, total_rows,
        dominant_schema, order_preserved, warnings.

    Raises:
        MissingColumnError if the label column is absent and ``classify`` is
        False.
    """
    warnings: list[str] = []
    if classify:
        warnings.extend(detection_warnings(df))
        df = detect_row_schema(df)
    labels = row_labels(df, source_hint="detect_row_schema() or pass classify=True")

    frames: list[pd.DataFrame] = []
    origins: list[int] = []
    for label, positions in group_row_positions(labels).items():
        if not positions:
            continue
        group = df.iloc[positions].reset_index(drop=True)
        transform = TRANSFORMS.get(label)
        if transform is None:
            warnings.append(f"{len(positions):,} rows have unknown schema - passing through as-is")
        else:
            group = transform(group)
        frames.append(group)
        origins.extend(positions)

    if frames:
        unified = pd.concat(frames, ignore_index=True, sort=False)
    else:
        unified = df.reset_index(drop=True)

    if preserve_order and origins:
        restore = sorted(range(len(origins)), key=origins.__getitem__)
        unified = unified.iloc[restore].reset_index(drop=True)

    unified = harmonize_column_names(unified)
    unified = drop_columns(unified, LEGACY_COLUMNS)

    label_counts = count_labels(labels)
    present = [label for label, count in label_counts.items() if count]
    if len(present) > 1:
        warnings.append(f"Multiple schema versions detected: {', '.join(present)}")
    dominant = max(present, key=label_counts.__getitem__) if present else None

    return {
        "dataframe": unified,
        "label_counts": label_counts,
        "unknown_rows": label_counts[SchemaLabel.UNKNOWN.value],
        "total_rows": len(labels),
        "dominant_schema": dominant,
        "order_preserved": bool(preserve_order),
        "warnings": warnings,
    }
