"""
Unit tests for layout detection and the prelude scan.

Detection contract:
- bare "Schedule" line -> layout A, four-space indented -> layout B
- course summary rows before the marker fill the CRN index
- no marker -> DialectNotRecognized, no preface -> PrefaceNotFound
"""

import unittest

from mycampus_calendar.config import ParserConfig
from mycampus_calendar.dialect import LineCursor, detect_dialect, split_lines
from mycampus_calendar.errors import DialectNotRecognized, PrefaceNotFound, StructuralParseError
from mycampus_calendar.model import ScheduleDialect
from tests.sample_data import prelude, summary_row


SUMMARY_RE = ParserConfig().compile().course_summary_re


class TestSplitLines(unittest.TestCase):
    def test_no_break_spaces_become_spaces(self) -> None:
        self.assertEqual(split_lines("a\u00a0b\n\u00a0\u00a0\u00a0\u00a0Schedule"), ["a b", "    Schedule"])

    def test_crlf_and_trailing_newline(self) -> None:
        self.assertEqual(split_lines("one\r\ntwo\r\n"), ["one", "two"])

    def test_blank_lines_are_kept(self) -> None:
        self.assertEqual(split_lines("one\n\ntwo"), ["one", "", "two"])


class TestLineCursor(unittest.TestCase):
    def test_next_raises_structural_error_with_field(self) -> None:
        cursor = LineCursor(["only"])
        self.assertEqual(cursor.next("first"), "only")
        with self.assertRaises(StructuralParseError) as ctx:
            cursor.next("CRN line")
        self.assertEqual(ctx.exception.expected_field, "CRN line")

    def test_line_number_is_one_based(self) -> None:
        cursor = LineCursor(["a", "b", "c"])
        cursor.skip(2, "lines")
        self.assertEqual(cursor.line_number, 2)
        self.assertEqual(cursor.next_or_none(), "c")
        self.assertIsNone(cursor.next_or_none())


class TestDetectDialect(unittest.TestCase):
    def test_bare_marker_selects_layout_a(self) -> None:
        detected = detect_dialect(prelude("A") + ["first block"], SUMMARY_RE)
        self.assertEqual(detected.dialect, ScheduleDialect.LAYOUT_A)
        # cursor is right after "Class Schedule for Fall 2024"
        self.assertEqual(detected.cursor.next("block"), "first block")

    def test_indented_marker_selects_layout_b(self) -> None:
        detected = detect_dialect(prelude("B") + ["first block"], SUMMARY_RE)
        self.assertEqual(detected.dialect, ScheduleDialect.LAYOUT_B)
        self.assertEqual(detected.cursor.next("block"), "first block")

    def test_marker_must_match_exactly(self) -> None:
        lines = ["Schedule ", "  Schedule", "Class Schedule for Fall 2024"]
        with self.assertRaises(DialectNotRecognized):
            detect_dialect(lines, SUMMARY_RE)

    def test_missing_marker(self) -> None:
        with self.assertRaises(DialectNotRecognized):
            detect_dialect(["Student Detail Schedule", "nothing else"], SUMMARY_RE)

    def test_missing_preface(self) -> None:
        with self.assertRaises(PrefaceNotFound):
            detect_dialect(["Schedule", "Look Up Classes"], SUMMARY_RE)

    def test_summary_rows_fill_crn_index(self) -> None:
        rows = [
            summary_row("Programming Workshop I", "CSCI 1060U", "40123"),
            summary_row("Quantum Things", "QUAN 2010U", "40999", "Laboratory"),
        ]
        detected = detect_dialect(prelude("A", rows), SUMMARY_RE)
        self.assertEqual(dict(detected.crn_index), {"40123": "CSCI", "40999": "QUAN"})

    def test_summary_rows_after_marker_are_ignored(self) -> None:
        lines = ["Schedule", summary_row("Late Row", "LATE 1000U", "41000"), "Class Schedule for Fall 2024"]
        detected = detect_dialect(lines, SUMMARY_RE)
        self.assertEqual(dict(detected.crn_index), {})

    def test_crn_index_is_read_only(self) -> None:
        detected = detect_dialect(prelude("A"), SUMMARY_RE)
        with self.assertRaises(TypeError):
            detected.crn_index["12345"] = "XXXX"  # type: ignore[index]


if __name__ == "__main__":
    unittest.main()
