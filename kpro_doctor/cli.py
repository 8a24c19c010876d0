from __future__ import annotations

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from kpro_doctor import __version__ as TOOL_VERSION
from kpro_doctor.errors import MissingColumnError
from kpro_doctor.loader import DEFAULT_EXPORT_PATTERN, load_kpro_directory, load_kpro_export
from kpro_doctor.schema_detection import detect_row_schema
from kpro_doctor.species import create_unified_species_column
from kpro_doctor.species_codes import SPECIES_CODE_MAP, lookup_species_code
from kpro_doctor.standardization import standardize_schema
from kpro_doctor.summary import build_detection_summary, build_standardization_summary

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_STRUCTURAL = 3
EXIT_UNKNOWN_ROWS = 4


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class KproDoctorArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def timestamp_token() -> str:
    override = os.environ.get("KPRO_DOCTOR_OUTPUT_STAMP")
    if override:
        return override
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def default_output_dir(input_path: Path) -> Path:
    return Path.cwd() / "kpro-doctor-output" / f"{input_path.stem}-{timestamp_token()}"


def determine_output_dir(args: argparse.Namespace, input_path: Path) -> Path:
    if getattr(args, "out_dir", None):
        return Path(args.out_dir)
    return default_output_dir(input_path)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, payload: str) -> None:
    ensure_parent(path)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def write_csv(path: Path, df: pd.DataFrame) -> None:
    ensure_parent(path)
    df.to_csv(path, index=False)


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, MissingColumnError):
        return EXIT_STRUCTURAL
    if isinstance(exc, (FileNotFoundError, IsADirectoryError)):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (ValueError, UnicodeDecodeError, OSError)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def load_input(input_path: Path, pattern: str) -> dict[str, Any]:
    if input_path.is_dir():
        return load_kpro_directory(input_path, pattern=pattern)
    return load_kpro_export(input_path)


def render_label_counts(label_counts: dict[str, int]) -> list[str]:
    total = sum(label_counts.values())
    lines = []
    for label, count in label_counts.items():
        if count:
            percent = 100 * count / total if total else 0.0
            lines.append(f"  {label}: {count:,} rows ({percent:.1f}%)")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = KproDoctorArgumentParser(
        prog="kpro-doctor",
        description="Detect KPro export generations and standardize them into one schema.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser("detect", help="Label every row with its export generation.")
    detect.add_argument("input", help="Export file or directory of exports")
    detect.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    detect.add_argument("--pattern", default=DEFAULT_EXPORT_PATTERN, help="File pattern for directory input")
    detect.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    detect.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")

    standardize = subparsers.add_parser("standardize", help="Write one unified dataset from mixed-generation exports.")
    standardize.add_argument("input", help="Export file or directory of exports")
    standardize.add_argument("-o", "--out", dest="out_dir", help="Output directory")
    standardize.add_argument("--output", help="Explicit unified CSV output path")
    standardize.add_argument("--pattern", default=DEFAULT_EXPORT_PATTERN, help="File pattern for directory input")
    standardize.add_argument(
        "--use-existing-labels",
        action="store_true",
        help="Trust the input's schema_version column instead of detecting",
    )
    standardize.add_argument("--preserve-order", action="store_true", help="Keep input row order instead of group order")
    standardize.add_argument("--species", action="store_true", help="Add the unified species column")
    standardize.add_argument("--fail-on-unknown", action="store_true", help="Return exit code 4 when unknown rows exist")
    standardize.add_argument("--dry-run", action="store_true", help="Run without writing outputs")
    standardize.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    standardize.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    standardize.add_argument("-v", "--verbose", action="store_true", help="More human logs")

    lookup = subparsers.add_parser("lookup", help="Show canonical codes for short species codes.")
    lookup.add_argument("codes", nargs="*", help="Codes to look up; none lists the whole table")
    lookup.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    subparsers.add_parser("version", help="Print version")
    return parser


def run_detect(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    try:
        loaded = load_input(input_path, args.pattern)
        labeled = detect_row_schema(loaded["dataframe"])
        out_dir = determine_output_dir(args, input_path)
        labeled_path = safe_output_path(out_dir / f"{input_path.stem}-labeled.csv")
        summary_path = safe_output_path(out_dir / "detect-summary.json")
        summary = build_detection_summary(
            labeled,
            input_path=input_path,
            output_path=labeled_path,
            warnings=loaded["warnings"],
        )
        write_csv(labeled_path, labeled)
        write_json(summary_path, summary)
        if args.json:
            print(json_dumps(summary))
        else:
            emit_human(f"Rows: {summary['rows']:,}", quiet=args.quiet)
            for line in render_label_counts(summary["label_counts"]):
                emit_human(line, quiet=args.quiet)
            for warning in summary["run_summary"]["warnings"]:
                emit_human(f"[!] {warning}", quiet=args.quiet)
            emit_human(f"Labeled data: {labeled_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_standardize(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    try:
        loaded = load_input(input_path, args.pattern)
        result = standardize_schema(
            loaded["dataframe"],
            classify=not args.use_existing_labels,
            preserve_order=args.preserve_order,
        )
        if args.species:
            result["dataframe"] = create_unified_species_column(result["dataframe"])

        out_dir = determine_output_dir(args, input_path)
        output_path = Path(args.output) if args.output else out_dir / f"{input_path.stem}-unified.csv"
        summary_path = out_dir / "standardize-summary.json"
        if not args.dry_run:
            output_path = safe_output_path(output_path)
            summary_path = safe_output_path(summary_path)

        summary = build_standardization_summary(
            result,
            input_path=input_path,
            output_path=None if args.dry_run else output_path,
            species_added=args.species,
            warnings=loaded["warnings"],
        )
        if not args.dry_run:
            write_csv(output_path, result["dataframe"])
            write_json(summary_path, summary)

        if args.json:
            print(json_dumps(summary))
        else:
            emit_human(f"Rows in: {result['total_rows']:,}  Rows out: {len(result['dataframe']):,}", quiet=args.quiet)
            if args.verbose:
                for line in render_label_counts(result["label_counts"]):
                    emit_human(line, quiet=args.quiet)
            for warning in summary["run_summary"]["warnings"]:
                emit_human(f"[!] {warning}", quiet=args.quiet)
            if not args.dry_run:
                emit_human(f"Unified data: {output_path}", quiet=args.quiet)
                emit_human(f"Standardize summary: {summary_path}", quiet=args.quiet)

        if args.fail_on_unknown and result["unknown_rows"]:
            return EXIT_UNKNOWN_ROWS
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_lookup(args: argparse.Namespace) -> int:
    codes = args.codes or sorted(SPECIES_CODE_MAP)
    payload = {code: lookup_species_code(code) for code in codes}
    if args.json:
        print(json_dumps(payload))
    else:
        for code, canonical in payload.items():
            marker = "" if code.strip().upper() in SPECIES_CODE_MAP else "  (not in table, unchanged)"
            print(f"{code} -> {canonical}{marker}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "detect":
            return run_detect(args)
        if args.command == "standardize":
            return run_standardize(args)
        if args.command == "lookup":
            return run_lookup(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
