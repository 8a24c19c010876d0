"""
loader.py - KPro export loader for kpro-doctor

Supports: .csv .tsv .txt .xlsx .xlsm

Public API:
    result = load_file("path/to/id.csv")
    df     = result["dataframe"]

    result = load_kpro_export("path/to/id.csv")      # cleaned names + provenance
    result = load_kpro_directory("path/to/exports")  # recursive discovery

Every column is read as text so species codes and file names are never
coerced. The loader never filters rows.
"""

from __future__ import annotations

import csv
import io
from collections import Counter
from pathlib import Path
from typing import Optional

import chardet
import pandas as pd

from kpro_doctor.columns import clean_column_names, find_column

TEXT_FORMATS  = {".csv", ".tsv", ".txt"}
EXCEL_FORMATS = {".xlsx", ".xlsm"}
ALL_FORMATS   = TEXT_FORMATS | EXCEL_FORMATS

# Semicolons are not offered: legacy exports use them inside the alternates list.
DELIMITER_CANDIDATES = [",", "\t", "|"]
DETECTOR_ID_LENGTH = 16
DEFAULT_EXPORT_PATTERN = "*id.csv"


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING / DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw[:200_000])
    return result.get("encoding") or "utf-8"


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Tries UTF-8, then the detected encoding, then latin-1. Embedded null
    bytes and a leading BOM are stripped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines).lstrip("\ufeff")


def _detect_delimiter(text: str) -> str:
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    sample = "\n".join(sample_lines[:25])

    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters="".join(DELIMITER_CANDIDATES)).delimiter
        except csv.Error:
            pass

    best_delim = ","
    best_score = float("-inf")
    for delim in DELIMITER_CANDIDATES:
        rows = [row for row in csv.reader(io.StringIO(sample), delimiter=delim) if any(cell.strip() for cell in row)]
        if len(rows) < 2:
            continue
        widths = Counter(len(row) for row in rows)
        mode_width, mode_count = widths.most_common(1)[0]
        score = mode_width * (1.0 + mode_count / len(rows))
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# FORMAT LOADERS
# ══════════════════════════════════════════════════════════════════════════════

def _load_text(path: Path, suffix: str) -> dict:
    raw       = path.read_bytes()
    enc       = _detect_encoding(raw)
    text      = _read_text_safely(raw, enc)
    delimiter = "\t" if suffix == ".tsv" else _detect_delimiter(text)

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            na_values=[""],
            sep=r"\|" if delimiter == "|" else delimiter,
            engine="python",
        )
    except Exception as exc:
        raise ValueError(f"Could not parse {suffix} file: {exc}") from exc

    return {
        "dataframe":         df,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": enc,
        "delimiter":         delimiter,
        "sheet_name":        None,
        "original_rows":     len(df) + 1,
        "original_columns":  len(df.columns),
        "warnings":          [],
    }


def _load_excel(path: Path, suffix: str, sheet_name: Optional[str]) -> dict:
    warnings: list[str] = []
    try:
        workbook = pd.ExcelFile(path, engine="openpyxl")
    except Exception as exc:
        raise ValueError(f"Could not read workbook {path.name}: {exc}") from exc

    names = list(workbook.sheet_names)
    if sheet_name is None:
        sheet_name = names[0]
        if len(names) > 1:
            warnings.append(f"Workbook has {len(names)} sheets; loaded the first ('{sheet_name}')")
    elif sheet_name not in names:
        raise ValueError(f"Sheet '{sheet_name}' not found. Available sheets: {names}")

    df = workbook.parse(sheet_name, dtype=str, keep_default_na=False, na_values=[""])
    return {
        "dataframe":         df,
        "detected_format":   suffix.lstrip("."),
        "detected_encoding": None,
        "delimiter":         None,
        "sheet_name":        sheet_name,
        "original_rows":     len(df) + 1,
        "original_columns":  len(df.columns),
        "warnings":          warnings,
    }


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_file(path: "str | Path", sheet_name: Optional[str] = None) -> dict:
    """
    Load one export file into a text-typed pandas DataFrame.

    Returns:
        dict with keys: dataframe, detected_format, detected_encoding,
        delimiter, sheet_name, original_rows, original_columns, warnings.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if the format is unsupported or unreadable.
    """
    path   = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

    if suffix in EXCEL_FORMATS:
        return _load_excel(path, suffix, sheet_name)
    return _load_text(path, suffix)


def add_provenance(df: pd.DataFrame, source: Path) -> tuple[pd.DataFrame, list[str]]:
    """Add ``source_file`` and ``detector_id`` (first 16 chars of ``in_file``)."""
    warnings: list[str] = []
    result = df.copy()
    result["source_file"] = str(source)

    in_file_col = find_column(result, "in_file")
    if in_file_col is None:
        result["detector_id"] = None
        warnings.append(f"Column 'in_file' not found in {source.name} - detector_id left empty")
    else:
        result["detector_id"] = result[in_file_col].map(
            lambda value: value[:DETECTOR_ID_LENGTH] if isinstance(value, str) else None
        )
    return result, warnings


def load_kpro_export(path: "str | Path", sheet_name: Optional[str] = None) -> dict:
    loaded = load_file(path, sheet_name=sheet_name)
    df = clean_column_names(loaded["dataframe"])
    df, warnings = add_provenance(df, Path(path))
    loaded["dataframe"] = df
    loaded["warnings"] = [*loaded["warnings"], *warnings]
    return loaded


def discover_exports(root: "str | Path", pattern: str = DEFAULT_EXPORT_PATTERN) -> list[Path]:
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")
    return sorted(path for path in root.rglob(pattern) if path.is_file())


def load_kpro_directory(root: "str | Path", pattern: str = DEFAULT_EXPORT_PATTERN) -> dict:
    """
    Recursively load every matching export under ``root`` and stack them.

    Unreadable files are skipped and reported in ``warnings``. Raises
    ValueError when nothing could be loaded.
    """
    files = discover_exports(root, pattern)
    frames: list[pd.DataFrame] = []
    loaded_files: list[str] = []
    warnings: list[str] = []

    for path in files:
        try:
            loaded = load_kpro_export(path)
        except (OSError, ValueError) as exc:
            warnings.append(f"Skipped {path}: {exc}")
            continue
        if loaded["dataframe"].empty:
            warnings.append(f"Skipped {path}: no data rows")
            continue
        frames.append(loaded["dataframe"])
        loaded_files.append(str(path))
        warnings.extend(loaded["warnings"])

    if not frames:
        raise ValueError(f"No readable files matching '{pattern}' under {root}")

    df = pd.concat(frames, ignore_index=True, sort=False)
    if find_column(df, "alternates") is not None and find_column(df, "alternate_1") is not None:
        warnings.append(
            "Stacked exports mix a legacy 'alternates' column with modern 'alternate_1' columns - "
            "every row will be standardized as v1 and modern alternate_* values replaced"
        )
    return {
        "dataframe":        df,
        "detected_format":  "directory",
        "files":            loaded_files,
        "original_rows":    len(df),
        "original_columns": len(df.columns),
        "warnings":         warnings,
    }
