from __future__ import annotations

import unittest
from pathlib import Path

import pandas as pd

from kpro_doctor import __version__
from kpro_doctor.contracts import CONTRACT_VERSIONS, build_contract
from kpro_doctor.schema_detection import detect_row_schema
from kpro_doctor.standardization import standardize_schema
from kpro_doctor.summary import build_detection_summary, build_standardization_summary

INPUT = Path("exports/site_a_id.csv")


class ContractTests(unittest.TestCase):
    def test_every_contract_has_a_version(self):
        for name in CONTRACT_VERSIONS:
            contract = build_contract(name)
            self.assertEqual(contract["name"], name)
            self.assertRegex(contract["version"], r"^\d+\.\d+\.\d+$")

    def test_detection_summary_emits_versioned_contract_and_run_summary(self):
        labeled = detect_row_schema(pd.DataFrame({"auto_id": ["MYLU", "MYOLUC", "MYOSEP", None]}))

        summary = build_detection_summary(labeled, input_path=INPUT, warnings=["one"])

        self.assertEqual(summary["contract"]["name"], "kpro_doctor.detect_summary")
        self.assertEqual(summary["schema_version"], summary["contract"]["version"])
        self.assertEqual(summary["tool_version"], __version__)
        self.assertEqual(summary["dominant_schema"], "v3_modern_6letter")
        self.assertEqual(summary["run_summary"]["command"], "detect")
        self.assertEqual(summary["run_summary"]["metrics"]["unknown_rows"], 1)
        self.assertEqual(summary["run_summary"]["metrics"]["schemas_present"], 3)
        self.assertEqual(summary["run_summary"]["warnings"], ["one"])
        self.assertIsNone(summary["run_summary"]["output_file"])

    def test_detection_summary_reports_missing_auto_id(self):
        labeled = detect_row_schema(pd.DataFrame({"alternate_1": ["LASBOR"]}))

        summary = build_detection_summary(labeled, input_path=INPUT, warnings=["loader warning"])

        self.assertEqual(
            summary["run_summary"]["warnings"],
            ["loader warning", "No auto_id column found - all rows classified as unknown"],
        )
        self.assertEqual(summary["label_counts"]["unknown"], 1)

    def test_standardization_summary_merges_loader_and_engine_warnings(self):
        result = standardize_schema(pd.DataFrame({"auto_id": ["MYLU", "Noise"]}), classify=True)

        summary = build_standardization_summary(
            result,
            input_path=INPUT,
            output_path=Path("out/unified.csv"),
            species_added=True,
            warnings=["loader warning"],
        )

        self.assertEqual(summary["contract"]["name"], "kpro_doctor.standardize_summary")
        self.assertEqual(summary["rows"], {"input": 2, "output": 2, "unknown": 1})
        self.assertTrue(summary["species_added"])
        self.assertEqual(summary["run_summary"]["output_file"], "out/unified.csv")
        self.assertEqual(summary["run_summary"]["warnings"][0], "loader warning")
        self.assertEqual(summary["run_summary"]["warnings_count"], len(result["warnings"]) + 1)
        self.assertRegex(summary["run_summary"]["generated_at"], r"Z$")


if __name__ == "__main__":
    unittest.main()
