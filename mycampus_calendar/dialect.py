"""
Layout detection.

The schedule page copies differently depending on the browser:

- Chromium: a bare "Schedule" heading, the weekday on the date line
- Firefox: "    Schedule" (indented), the weekday on its own line

Before that heading the page shows a course summary table; its rows give
the short subject code for every CRN, which we keep as a fallback for
subjects missing from the static table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from re import Pattern
from typing import Dict, List, Mapping, Optional

from mycampus_calendar.errors import DialectNotRecognized, PrefaceNotFound, StructuralParseError
from mycampus_calendar.model import DIALECT_RULES, ScheduleDialect

logger = logging.getLogger(__name__)

PREFACE_PREFIX = "Class Schedule for "


def split_lines(raw_data: str) -> List[str]:
    """
    Normalize no-break spaces and split the pasted text into lines.
    """
    text = raw_data.replace("\u00a0", " ")
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class LineCursor:
    """
    Forward-only reader over the input lines.

    line_number is the 1-based number of the line returned last.
    """

    def __init__(self, lines: List[str], position: int = 0) -> None:
        self._lines = lines
        self._pos = position

    @property
    def line_number(self) -> int:
        return self._pos

    def exhausted(self) -> bool:
        return self._pos >= len(self._lines)

    def next_or_none(self) -> Optional[str]:
        if self.exhausted():
            return None
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def next(self, expected_field: str) -> str:
        line = self.next_or_none()
        if line is None:
            raise StructuralParseError(expected_field, line_number=len(self._lines) + 1)
        return line

    def skip(self, count: int, expected_field: str) -> None:
        for _ in range(count):
            self.next(expected_field)


@dataclass
class DetectedSchedule:
    dialect: ScheduleDialect
    crn_index: Mapping[str, str]
    cursor: LineCursor


def detect_dialect(lines: List[str], course_summary_re: Pattern[str]) -> DetectedSchedule:
    """
    Scan the prelude: collect the CRN index, pick the layout and position
    the cursor on the first line after the "Class Schedule for ..." preface.
    """
    markers = {rules.marker: dialect for dialect, rules in DIALECT_RULES.items()}
    cursor = LineCursor(lines)
    crn_index: Dict[str, str] = {}

    dialect: Optional[ScheduleDialect] = None
    while dialect is None:
        line = cursor.next_or_none()
        if line is None:
            raise DialectNotRecognized()

        m = course_summary_re.search(line)
        if m:
            crn_index[m.group("crn")] = m.group("subject")

        dialect = markers.get(line)

    logger.debug("Detected %s (marker on line %d)", dialect.name, cursor.line_number)
    logger.debug("CRN index from course summary: %s", crn_index)

    # skip unneeded prelude
    while True:
        line = cursor.next_or_none()
        if line is None:
            raise PrefaceNotFound(PREFACE_PREFIX)
        if line.startswith(PREFACE_PREFIX):
            break

    return DetectedSchedule(dialect=dialect, crn_index=MappingProxyType(crn_index), cursor=cursor)
