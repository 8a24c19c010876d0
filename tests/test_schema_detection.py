from __future__ import annotations

import unittest

import pandas as pd

from kpro_doctor.errors import MissingColumnError
from kpro_doctor.schema_detection import (
    SchemaLabel,
    classify_row,
    detect_row_schema,
    detection_warnings,
    get_dominant_schema,
    get_schema_summary,
)

V1 = SchemaLabel.V1_LEGACY_SINGLE_COLUMN.value
V2 = SchemaLabel.V2_TRANSITIONAL_SHORT_CODE.value
V3 = SchemaLabel.V3_MODERN_LONG_CODE.value
UNKNOWN = SchemaLabel.UNKNOWN.value


class ClassifyRowTests(unittest.TestCase):
    def test_code_length_decides_generation(self):
        self.assertIs(classify_row("MYLU"), SchemaLabel.V2_TRANSITIONAL_SHORT_CODE)
        self.assertIs(classify_row("MYOLUC"), SchemaLabel.V3_MODERN_LONG_CODE)
        self.assertIs(classify_row("  MYOLUC  "), SchemaLabel.V3_MODERN_LONG_CODE)

    def test_semicolons_win_over_code_length(self):
        self.assertIs(classify_row("MYOLUC", "LACI;LABO"), SchemaLabel.V1_LEGACY_SINGLE_COLUMN)
        self.assertIs(classify_row("MYLU", None, "EPFU;LANO"), SchemaLabel.V1_LEGACY_SINGLE_COLUMN)

    def test_ambiguous_values_degrade_to_unknown(self):
        for auto_id in (None, "", "   ", "Noise", "MY", "MYOTIS_SP", float("nan")):
            self.assertIs(classify_row(auto_id), SchemaLabel.UNKNOWN, auto_id)

    def test_four_character_placeholder_is_short_code_generation(self):
        self.assertIs(classify_row("NoID"), SchemaLabel.V2_TRANSITIONAL_SHORT_CODE)

    def test_parse_accepts_values_names_and_junk(self):
        self.assertIs(SchemaLabel.parse("v3_modern_6letter"), SchemaLabel.V3_MODERN_LONG_CODE)
        self.assertIs(SchemaLabel.parse("V1_LEGACY_SINGLE_COLUMN"), SchemaLabel.V1_LEGACY_SINGLE_COLUMN)
        self.assertIs(SchemaLabel.parse("v9_future"), SchemaLabel.UNKNOWN)
        self.assertIs(SchemaLabel.parse(None), SchemaLabel.UNKNOWN)


class DetectRowSchemaTests(unittest.TestCase):
    def test_mixed_generations_are_labelled_per_row(self):
        df = pd.DataFrame(
            {
                "auto_id": ["MYLU", "MYOLUC", "EPFU", "NoID", None, "Noise"],
                "alternate_1": ["LACI;LABO", "LASBOR", "MYSE", None, None, None],
            }
        )

        labeled = detect_row_schema(df)

        self.assertEqual(labeled["schema_version"].tolist(), [V1, V3, V2, V2, UNKNOWN, UNKNOWN])
        self.assertEqual(len(labeled), len(df))
        self.assertNotIn("schema_version", df.columns)

    def test_alternates_column_labels_every_row_v1(self):
        df = pd.DataFrame(
            {
                "Auto_ID": ["MYOLUC", "MYLU", None],
                "ALTERNATES": ["LACI;LABO;LANO", "", None],
            }
        )

        labeled = detect_row_schema(df)

        self.assertEqual(labeled["schema_version"].tolist(), [V1, V1, V1])

    def test_missing_auto_id_labels_everything_unknown(self):
        df = pd.DataFrame({"alternate_1": ["LACI;LABO", "LASBOR"]})

        labeled = detect_row_schema(df)

        self.assertEqual(labeled["schema_version"].tolist(), [UNKNOWN, UNKNOWN])
        self.assertEqual(detection_warnings(df), ["No auto_id column found - all rows classified as unknown"])

    def test_present_auto_id_or_alternates_gives_no_detection_warning(self):
        self.assertEqual(detection_warnings(pd.DataFrame({"Auto_ID": ["MYLU"]})), [])
        self.assertEqual(detection_warnings(pd.DataFrame({"alternates": ["LACI;LABO"]})), [])

    def test_existing_labels_are_replaced_not_duplicated(self):
        df = pd.DataFrame({"auto_id": ["MYOLUC"], "Schema_Version": ["stale"]})

        labeled = detect_row_schema(df)

        self.assertEqual(list(labeled.columns), ["auto_id", "schema_version"])
        self.assertEqual(labeled["schema_version"].tolist(), [V3])

    def test_every_row_gets_exactly_one_label(self):
        df = pd.DataFrame(
            {
                "auto_id": ["MYLU", "MYOLUC", "", "ABCDEFGH", "EPTFUS", None, "LANO"],
                "alternate_2": [None, "EPFU;MYLU", None, None, "", "x", None],
            },
            index=[10, 11, 12, 13, 14, 15, 16],
        )

        labeled = detect_row_schema(df)

        self.assertEqual(list(labeled.index), list(df.index))
        valid = {label.value for label in SchemaLabel}
        self.assertTrue(all(value in valid for value in labeled["schema_version"]))

    def test_empty_frame_gets_empty_label_column(self):
        df = pd.DataFrame({"auto_id": pd.Series([], dtype=object)})

        labeled = detect_row_schema(df)

        self.assertIn("schema_version", labeled.columns)
        self.assertEqual(len(labeled), 0)


class SchemaSummaryTests(unittest.TestCase):
    def test_summary_counts_and_percentages(self):
        df = detect_row_schema(pd.DataFrame({"auto_id": ["MYLU", "MYOLUC", "MYOSEP", "MYOSOD"]}))

        summary = get_schema_summary(df)

        self.assertEqual(summary["schema_version"].tolist(), [V2, V3])
        self.assertEqual(summary["count"].tolist(), [1, 3])
        self.assertEqual(summary["percent"].tolist(), [25.0, 75.0])
        self.assertIs(get_dominant_schema(df), SchemaLabel.V3_MODERN_LONG_CODE)

    def test_dominant_schema_ties_follow_group_order(self):
        df = detect_row_schema(pd.DataFrame({"auto_id": ["MYOLUC", "MYLU"]}))

        self.assertIs(get_dominant_schema(df), SchemaLabel.V2_TRANSITIONAL_SHORT_CODE)

    def test_summary_requires_label_column(self):
        with self.assertRaises(MissingColumnError) as ctx:
            get_schema_summary(pd.DataFrame({"auto_id": ["MYLU"]}))
        self.assertIn("schema_version", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
