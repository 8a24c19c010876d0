"""Reconcile the legacy ``out_file`` column with the modern split output paths.

Older KPro exports wrote one ``out_file`` column. Newer exports write
``out_file_fs`` (full-spectrum) and ``out_file_zc`` (zero-crossing).
"""

from __future__ import annotations

import pandas as pd

from kpro_doctor.columns import find_column, is_blank

LEGACY_OUTPUT_COLUMN = "out_file"
FULL_SPECTRUM_COLUMN = "out_file_fs"


def harmonize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    legacy_col = find_column(df, LEGACY_OUTPUT_COLUMN)
    if legacy_col is None:
        return df

    fs_col = find_column(df, FULL_SPECTRUM_COLUMN)
    if fs_col is None:
        return df.rename(columns={legacy_col: FULL_SPECTRUM_COLUMN})

    # Mixed generations: the modern value wins, blanks fall back to legacy.
    result = df.copy()
    modern = result[fs_col].tolist()
    legacy = result[legacy_col].tolist()
    result[fs_col] = pd.Series(
        [old if is_blank(new) and not is_blank(old) else new for new, old in zip(modern, legacy)],
        index=result.index,
        dtype=object,
    )
    return result.drop(columns=[legacy_col])
