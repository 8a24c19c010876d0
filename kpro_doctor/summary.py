from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from kpro_doctor import __version__ as TOOL_VERSION
from kpro_doctor.contracts import build_contract, build_run_summary
from kpro_doctor.schema_detection import (
    SchemaLabel,
    count_labels,
    detection_warnings,
    get_dominant_schema,
    row_labels,
)


def build_detection_summary(
    labeled: pd.DataFrame,
    *,
    input_path: Path,
    output_path: Path | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    contract = build_contract("kpro_doctor.detect_summary")
    label_counts = count_labels(row_labels(labeled))
    dominant = get_dominant_schema(labeled)
    all_warnings = [*(warnings or []), *detection_warnings(labeled)]
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "rows": len(labeled),
        "label_counts": label_counts,
        "dominant_schema": dominant.value if dominant else None,
        "run_summary": build_run_summary(
            command="detect",
            input_path=input_path,
            output_path=output_path,
            warnings=all_warnings,
            metrics={
                "rows": len(labeled),
                "unknown_rows": label_counts[SchemaLabel.UNKNOWN.value],
                "schemas_present": sum(1 for count in label_counts.values() if count),
            },
        ),
    }


def build_standardization_summary(
    result: dict[str, Any],
    *,
    input_path: Path,
    output_path: Path | None = None,
    species_added: bool = False,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    contract = build_contract("kpro_doctor.standardize_summary")
    unified = result["dataframe"]
    all_warnings = [*(warnings or []), *result["warnings"]]
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "rows": {
            "input": result["total_rows"],
            "output": len(unified),
            "unknown": result["unknown_rows"],
        },
        "label_counts": dict(result["label_counts"]),
        "dominant_schema": result["dominant_schema"],
        "order_preserved": result["order_preserved"],
        "species_added": species_added,
        "columns": [str(column) for column in unified.columns],
        "run_summary": build_run_summary(
            command="standardize",
            input_path=input_path,
            output_path=output_path,
            warnings=all_warnings,
            metrics={
                "input_rows": result["total_rows"],
                "output_rows": len(unified),
                "unknown_rows": result["unknown_rows"],
                "schemas_present": sum(1 for count in result["label_counts"].values() if count),
            },
        ),
    }
