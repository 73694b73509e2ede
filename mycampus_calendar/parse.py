"""
Parsing (pasted schedule text -> ClassRecord list).

After the prelude (see dialect.py) the page lists one block per class:

    Programming Workshop I | Computer Science 1060U Section 001 | Lecture
    Registered
    ... | Schedule Type: Lecture | ...
    09/04/2024 -- 12/02/2024   Wednesday      <- one or more meeting times
    S M T W T F S (one per line)
        11:10 AM - 12:30 PM Type: Class Location: ... Building: ... Room: ...
    Jane Doe                                 <- instructor (may be empty)
    CRN: 40123

The block reader is a small state machine, one handler per state:

    EXPECT_COURSE_NAME -> SKIP_REGISTERED -> EXPECT_SCHEDULE_TYPE
        -> DATE_RANGE_LOOP -> EXPECT_CRN -> EMIT -> EXPECT_COURSE_NAME | DONE

Important rules:
- Any malformed or missing line aborts the whole run (no partial output)
- A meeting whose weekday is "None" is dropped together with its day grid
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from mycampus_calendar.config import CompiledPatterns, ParserConfig
from mycampus_calendar.dialect import LineCursor, detect_dialect, split_lines
from mycampus_calendar.errors import FieldParseError, PatternMismatch
from mycampus_calendar.model import DIALECT_RULES, ClassRecord, MeetingRange, ScheduleDialect
from mycampus_calendar.subjects import SUBJECTS, SubjectResolver, default_resolver

logger = logging.getLogger(__name__)


NO_WEEKDAY = "None"

WEEKDAYS: Dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def parse_weekday(token: str, line_number: Optional[int] = None) -> int:
    """
    Convert "Wednesday" / "wed" to a weekday index (Monday = 0).
    """
    key = token.strip().lower()
    for name, index in WEEKDAYS.items():
        if key == name or key == name[:3]:
            return index
    raise FieldParseError("weekday", token, line_number=line_number)


def parse_date(raw: str, line_number: Optional[int] = None) -> date:
    try:
        return datetime.strptime(raw, "%m/%d/%Y").date()
    except ValueError as e:
        raise FieldParseError("date", raw, e, line_number=line_number) from e


def parse_time(raw: str, line_number: Optional[int] = None) -> time:
    try:
        return datetime.strptime(raw, "%I:%M %p").time()
    except ValueError as e:
        raise FieldParseError("time", raw, e, line_number=line_number) from e


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ParserState(enum.Enum):
    EXPECT_COURSE_NAME = "expect_course_name"
    SKIP_REGISTERED = "skip_registered"
    EXPECT_SCHEDULE_TYPE = "expect_schedule_type"
    DATE_RANGE_LOOP = "date_range_loop"
    EXPECT_CRN = "expect_crn"
    EMIT = "emit"
    DONE = "done"


@dataclass
class _BlockDraft:
    """Fields collected for the class block currently being read."""

    name: str
    subject: str
    code_number: str
    line_number: int
    schedule_type: str = ""
    date_ranges: List[MeetingRange] = field(default_factory=list)
    instructor: str = ""
    crn_line: str = ""


class ScheduleParser:
    """
    Reads all class blocks from a cursor positioned after the preface.
    """

    def __init__(
        self,
        patterns: CompiledPatterns,
        dialect: ScheduleDialect,
        resolver: SubjectResolver,
    ) -> None:
        self.patterns = patterns
        self.dialect = dialect
        self.rules = DIALECT_RULES[dialect]
        self.resolver = resolver

        self._handlers: Mapping[ParserState, Callable[[LineCursor], ParserState]] = {
            ParserState.EXPECT_COURSE_NAME: self._expect_course_name,
            ParserState.SKIP_REGISTERED: self._skip_registered,
            ParserState.EXPECT_SCHEDULE_TYPE: self._expect_schedule_type,
            ParserState.DATE_RANGE_LOOP: self._date_range_loop,
            ParserState.EXPECT_CRN: self._expect_crn,
            ParserState.EMIT: self._emit,
        }
        self._draft: Optional[_BlockDraft] = None
        self._records: List[ClassRecord] = []

    def run(self, cursor: LineCursor) -> List[ClassRecord]:
        self._draft = None
        self._records = []

        state = ParserState.EXPECT_COURSE_NAME
        while state is not ParserState.DONE:
            state = self._handlers[state](cursor)

        return list(self._records)

    # -- handlers ------------------------------------------------------------

    def _expect_course_name(self, cursor: LineCursor) -> ParserState:
        line = cursor.next_or_none()

        # handle extra newlines at the end
        if line is None or not line.strip():
            return ParserState.DONE

        m = self.patterns.course_name_re.search(line)
        if not m:
            raise PatternMismatch("course_name_re", line, line_number=cursor.line_number)

        self._draft = _BlockDraft(
            name=m.group("name"),
            subject=m.group("subject"),
            code_number=m.group("code"),
            line_number=cursor.line_number,
        )
        return ParserState.SKIP_REGISTERED

    def _skip_registered(self, cursor: LineCursor) -> ParserState:
        cursor.next("registration status line")
        return ParserState.EXPECT_SCHEDULE_TYPE

    def _expect_schedule_type(self, cursor: LineCursor) -> ParserState:
        line = cursor.next("schedule type line")
        m = self.patterns.message_re.search(line)
        if not m:
            raise PatternMismatch("message_re", line, line_number=cursor.line_number)

        self._current.schedule_type = m.group("class_type")
        return ParserState.DATE_RANGE_LOOP

    def _date_range_loop(self, cursor: LineCursor) -> ParserState:
        line = cursor.next("meeting date or instructor line")
        m = self.patterns.date_re.search(line)
        if not m:
            # first line that is not a date range names the instructor
            self._current.instructor = line
            return ParserState.EXPECT_CRN

        meeting = self._read_meeting(cursor, line, m.group("start"), m.group("end"), m.group("weekday"))
        if meeting is not None:
            self._current.date_ranges.append(meeting)
        return ParserState.DATE_RANGE_LOOP

    def _expect_crn(self, cursor: LineCursor) -> ParserState:
        self._current.crn_line = cursor.next("CRN line")
        return ParserState.EMIT

    def _emit(self, cursor: LineCursor) -> ParserState:
        draft = self._current
        short_subject = self.resolver.resolve(draft.subject, draft.crn_line, line_number=draft.line_number)

        m = self.patterns.crn_re.search(draft.crn_line)
        record = ClassRecord(
            name=draft.name,
            short_code=f"{short_subject} {draft.code_number}",
            schedule_type=draft.schedule_type,
            instructor=draft.instructor,
            crn=m.group("crn") if m else None,
            crn_line=draft.crn_line,
            date_ranges=tuple(draft.date_ranges),
        )
        logger.debug("Parsed %s", record)

        self._records.append(record)
        self._draft = None
        return ParserState.EXPECT_COURSE_NAME

    # -- meeting times -------------------------------------------------------

    @property
    def _current(self) -> _BlockDraft:
        assert self._draft is not None, "no class block in progress"
        return self._draft

    def _read_meeting(
        self,
        cursor: LineCursor,
        date_line: str,
        start_raw: str,
        end_raw: str,
        weekday_token: Optional[str],
    ) -> Optional[MeetingRange]:
        """
        Read one meeting time whose date line was just consumed.

        Returns None for meetings without a weekday (nothing to schedule).
        """
        date_line_number = cursor.line_number
        start_date = parse_date(start_raw, date_line_number)
        end_date = parse_date(end_raw, date_line_number)

        if self.rules.weekday_on_date_line:
            if weekday_token is None:
                raise PatternMismatch("date_re", date_line, line_number=date_line_number)
        else:
            weekday_token = cursor.next("weekday line").strip()

        if weekday_token == NO_WEEKDAY:
            cursor.skip(self.rules.none_skip, "day grid of a meeting without weekday")
            return None

        weekday = parse_weekday(weekday_token, cursor.line_number)

        # skip day abbreviations
        cursor.skip(self.rules.header_skip, "day abbreviation lines")

        time_line = cursor.next("meeting time line")
        m = self.patterns.time_re.search(time_line)
        if not m:
            raise PatternMismatch("time_re", time_line, line_number=cursor.line_number)

        return MeetingRange(
            start_date=start_date,
            end_date=end_date,
            start_time=parse_time(m.group("start"), cursor.line_number),
            end_time=parse_time(m.group("end"), cursor.line_number),
            weekday=weekday,
            location=m.group("location"),
            building=m.group("building"),
            room=m.group("room"),
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_with_dialect(
    raw_data: str,
    config: Optional[ParserConfig] = None,
    table: Mapping[str, str] = SUBJECTS,
) -> Tuple[ScheduleDialect, List[ClassRecord]]:
    """
    Parse the pasted schedule page and report which layout was detected.
    """
    patterns = (config or ParserConfig()).compile()
    lines = split_lines(raw_data)

    detected = detect_dialect(lines, patterns.course_summary_re)
    resolver = default_resolver(detected.crn_index, patterns.crn_re, table)

    records = ScheduleParser(patterns, detected.dialect, resolver).run(detected.cursor)
    logger.info("Parsed %d class(es) from %s input", len(records), detected.dialect.name)
    return detected.dialect, records


def parse_schedule(
    raw_data: str,
    config: Optional[ParserConfig] = None,
    table: Mapping[str, str] = SUBJECTS,
) -> List[ClassRecord]:
    """
    Parse the pasted schedule page into one ClassRecord per class block.
    """
    _, records = parse_with_dialect(raw_data, config, table)
    return records
