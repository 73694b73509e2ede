"""
Unit tests for the class block parser.

Both layouts must produce identical records for the same classes.
Malformed input always raises a structured error; nothing is returned
partially.
"""

import unittest
from datetime import date, time

from mycampus_calendar.config import ParserConfig
from mycampus_calendar.dialect import LineCursor
from mycampus_calendar.errors import FieldParseError, PatternMismatch, StructuralParseError, UnknownSubject
from mycampus_calendar.model import ScheduleDialect
from mycampus_calendar.parse import (
    ParserState,
    ScheduleParser,
    parse_schedule,
    parse_weekday,
    parse_with_dialect,
)
from mycampus_calendar.subjects import default_resolver
from tests.sample_data import class_block, schedule_text, workshop_block


class TestParseWeekday(unittest.TestCase):
    def test_full_and_short_names(self) -> None:
        self.assertEqual(parse_weekday("Monday"), 0)
        self.assertEqual(parse_weekday("wed"), 2)
        self.assertEqual(parse_weekday("SUNDAY"), 6)

    def test_unknown_weekday(self) -> None:
        with self.assertRaises(FieldParseError) as ctx:
            parse_weekday("Funday")
        self.assertEqual(ctx.exception.kind, "weekday")
        self.assertEqual(ctx.exception.raw, "Funday")


class TestParseScheduleLayoutA(unittest.TestCase):
    def test_single_class(self) -> None:
        text = schedule_text([workshop_block("A")])
        dialect, records = parse_with_dialect(text)

        self.assertEqual(dialect, ScheduleDialect.LAYOUT_A)
        self.assertEqual(len(records), 1)
        rec = records[0]
        self.assertEqual(rec.name, "Programming Workshop I")
        self.assertEqual(rec.short_code, "CSCI 1060U")
        self.assertEqual(rec.schedule_type, "Lecture")
        self.assertEqual(rec.instructor, "Jane Doe")
        self.assertEqual(rec.crn, "40123")
        self.assertEqual(rec.crn_line, "CRN: 40123")

        self.assertEqual(len(rec.date_ranges), 1)
        mr = rec.date_ranges[0]
        self.assertEqual(mr.start_date, date(2024, 9, 4))
        self.assertEqual(mr.end_date, date(2024, 12, 2))
        self.assertEqual(mr.start_time, time(11, 10))
        self.assertEqual(mr.end_time, time(12, 30))
        self.assertEqual(mr.weekday, 2)
        self.assertEqual(mr.location, "North Oshawa")
        self.assertEqual(mr.building, "Science Building")
        self.assertEqual(mr.room, "UA1350")

    def test_multiple_meetings_and_classes(self) -> None:
        pm_line = (
            "    2:10 PM - 3:30 PM Type: Class Location: Downtown Oshawa "
            "Building: Charles Hall Room: DTA 112"
        )
        blocks = [
            workshop_block(
                "A",
                meetings=[
                    ("09/04/2024", "12/02/2024", "Wednesday", None),
                    ("09/04/2024", "12/02/2024", "Friday", pm_line),
                ],
            ),
            class_block(
                "Calculus I",
                "Mathematics",
                "1010U",
                "Lecture",
                [("09/03/2024", "12/02/2024", "Monday", None)],
                instructor="John Smith",
                crn="40200",
            ),
        ]
        records = parse_schedule(schedule_text(blocks))

        self.assertEqual([r.name for r in records], ["Programming Workshop I", "Calculus I"])
        self.assertEqual(records[1].short_code, "MATH 1010U")
        friday = records[0].date_ranges[1]
        self.assertEqual(friday.weekday, 4)
        self.assertEqual(friday.start_time, time(14, 10))
        self.assertEqual(friday.building, "Charles Hall")
        self.assertEqual(friday.room, "DTA 112")

    def test_meeting_without_weekday_is_dropped(self) -> None:
        block = workshop_block(
            "A",
            meetings=[
                ("09/04/2024", "09/04/2024", "None", None),
                ("09/04/2024", "12/02/2024", "Wednesday", None),
            ],
        )
        records = parse_schedule(schedule_text([block]))
        self.assertEqual(len(records[0].date_ranges), 1)
        self.assertEqual(records[0].date_ranges[0].weekday, 2)
        self.assertEqual(records[0].instructor, "Jane Doe")

    def test_class_without_meetings(self) -> None:
        block = workshop_block("A", meetings=[("09/04/2024", "09/04/2024", "None", None)])
        records = parse_schedule(schedule_text([block]))
        self.assertEqual(records[0].date_ranges, ())

    def test_empty_instructor_is_kept(self) -> None:
        records = parse_schedule(schedule_text([workshop_block("A", instructor="")]))
        self.assertEqual(records[0].instructor, "")
        self.assertEqual(records[0].crn, "40123")

    def test_input_may_end_without_blank_line(self) -> None:
        text = schedule_text([workshop_block("A")], trailer=())
        self.assertEqual(len(parse_schedule(text)), 1)

    def test_blank_line_stops_parsing(self) -> None:
        text = schedule_text([workshop_block("A")], trailer=("", "Footer noise that is not a class"))
        self.assertEqual(len(parse_schedule(text)), 1)

    def test_no_classes(self) -> None:
        self.assertEqual(parse_schedule(schedule_text([])), [])

    def test_unmatched_crn_line(self) -> None:
        block = workshop_block("A")
        block[-1] = "Reference number unavailable"
        rec = parse_schedule(schedule_text([block]))[0]
        self.assertIsNone(rec.crn)
        self.assertEqual(rec.crn_line, "Reference number unavailable")


class TestParseScheduleLayoutB(unittest.TestCase):
    def test_same_records_as_layout_a(self) -> None:
        meetings = [
            ("09/04/2024", "09/04/2024", "None", None),
            ("09/04/2024", "12/02/2024", "Wednesday", None),
        ]
        a = parse_schedule(schedule_text([workshop_block("A", meetings=meetings)], layout="A"))
        dialect, b = parse_with_dialect(schedule_text([workshop_block("B", meetings=meetings)], layout="B"))

        self.assertEqual(dialect, ScheduleDialect.LAYOUT_B)
        self.assertEqual(a, b)

    def test_layout_b_text_with_layout_a_rules_fails(self) -> None:
        # marker says layout A, but the blocks have layout B line offsets
        text = schedule_text([workshop_block("B")], layout="A")
        with self.assertRaises(PatternMismatch):
            parse_schedule(text)


class TestParseErrors(unittest.TestCase):
    def test_course_name_mismatch(self) -> None:
        block = workshop_block("A")
        block[0] = "Not a course name line"
        with self.assertRaises(PatternMismatch) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.pattern_name, "course_name_re")
        self.assertEqual(ctx.exception.raw_line, "Not a course name line")
        self.assertIsNotNone(ctx.exception.line_number)

    def test_schedule_type_mismatch(self) -> None:
        block = workshop_block("A")
        block[2] = "Class Begin: 09/04/2024 | Type: Lecture"
        with self.assertRaises(PatternMismatch) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.pattern_name, "message_re")

    def test_time_line_mismatch(self) -> None:
        block = workshop_block("A", meetings=[("09/04/2024", "12/02/2024", "Wednesday", "    TBA")])
        with self.assertRaises(PatternMismatch) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.pattern_name, "time_re")
        self.assertEqual(ctx.exception.raw_line, "    TBA")

    def test_layout_a_date_line_without_weekday(self) -> None:
        block = workshop_block("A")
        block[3] = "09/04/2024 -- 12/02/2024"
        with self.assertRaises(PatternMismatch) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.pattern_name, "date_re")

    def test_invalid_date(self) -> None:
        block = workshop_block("A", meetings=[("13/45/2024", "12/02/2024", "Wednesday", None)])
        with self.assertRaises(FieldParseError) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.kind, "date")
        self.assertEqual(ctx.exception.raw, "13/45/2024")
        self.assertIsInstance(ctx.exception.cause, ValueError)

    def test_invalid_time(self) -> None:
        bad = "    25:10 XM - 12:30 PM Type: Class Location: North Oshawa Building: Science Building Room: UA1350"
        block = workshop_block("A", meetings=[("09/04/2024", "12/02/2024", "Wednesday", bad)])
        with self.assertRaises(FieldParseError) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.kind, "time")
        self.assertEqual(ctx.exception.raw, "25:10 XM")

    def test_invalid_weekday(self) -> None:
        block = workshop_block("A", meetings=[("09/04/2024", "12/02/2024", "Someday", None)])
        with self.assertRaises(FieldParseError) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.kind, "weekday")

    def test_truncated_block(self) -> None:
        block = workshop_block("A")[:-1]  # drop the CRN line
        text = schedule_text([block], trailer=())
        with self.assertRaises(StructuralParseError) as ctx:
            parse_schedule(text)
        self.assertEqual(ctx.exception.expected_field, "CRN line")

    def test_truncated_day_grid(self) -> None:
        block = workshop_block("A")[:6]  # date line and only two day letters
        with self.assertRaises(StructuralParseError) as ctx:
            parse_schedule(schedule_text([block], trailer=()))
        self.assertEqual(ctx.exception.expected_field, "day abbreviation lines")

    def test_unknown_subject(self) -> None:
        block = class_block(
            "Underwater Basket Weaving",
            "Aquatic Crafts",
            "1000U",
            "Lecture",
            [("09/04/2024", "12/02/2024", "Wednesday", None)],
            crn="49999",
        )
        with self.assertRaises(UnknownSubject) as ctx:
            parse_schedule(schedule_text([block]))
        self.assertEqual(ctx.exception.subject, "Aquatic Crafts")


class TestScheduleParserStates(unittest.TestCase):
    def _parser(self, dialect: ScheduleDialect) -> ScheduleParser:
        patterns = ParserConfig().compile()
        return ScheduleParser(patterns, dialect, default_resolver({}, patterns.crn_re))

    def test_date_range_loop_ends_on_instructor(self) -> None:
        parser = self._parser(ScheduleDialect.LAYOUT_A)
        cursor = LineCursor(workshop_block("A"))
        self.assertEqual(parser._expect_course_name(cursor), ParserState.SKIP_REGISTERED)
        self.assertEqual(parser._skip_registered(cursor), ParserState.EXPECT_SCHEDULE_TYPE)
        self.assertEqual(parser._expect_schedule_type(cursor), ParserState.DATE_RANGE_LOOP)
        self.assertEqual(parser._date_range_loop(cursor), ParserState.DATE_RANGE_LOOP)
        self.assertEqual(parser._date_range_loop(cursor), ParserState.EXPECT_CRN)
        self.assertEqual(parser._expect_crn(cursor), ParserState.EMIT)
        self.assertEqual(parser._emit(cursor), ParserState.EXPECT_COURSE_NAME)
        self.assertEqual(parser._expect_course_name(cursor), ParserState.DONE)

    def test_run_on_layout_b_block(self) -> None:
        parser = self._parser(ScheduleDialect.LAYOUT_B)
        records = parser.run(LineCursor(workshop_block("B")))
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].date_ranges[0].weekday, 2)


class TestCustomPatterns(unittest.TestCase):
    def test_renamed_schedule_type_heading(self) -> None:
        block = workshop_block("A")
        block[2] = "Class Begin: 09/04/2024 | Activity: Lecture | Instructional Method: In-class"
        config = ParserConfig.from_dict({"message_re": r"\| Activity: (?P<class_type>.+?) \|"})
        records = parse_schedule(schedule_text([block]), config)
        self.assertEqual(records[0].schedule_type, "Lecture")


if __name__ == "__main__":
    unittest.main()
