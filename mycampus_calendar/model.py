"""
Central data model definitions used across the project.

This module defines the canonical structure of the parsed schedule so that:
- the parser, the calendar builder and the CLI share the same field names
- parsed records stay read-only once the parser hands them out
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Mapping, Optional, Tuple


class ScheduleDialect(enum.Enum):
    """
    The two layouts produced when the schedule page is copied.

    LAYOUT_A comes from Chromium based browsers, LAYOUT_B from Firefox.
    """

    LAYOUT_A = "layout_a"
    LAYOUT_B = "layout_b"


@dataclass(frozen=True)
class DialectRules:
    """
    Line offsets that differ between the two layouts.

    header_skip: day-abbreviation lines between the weekday and the time line
    none_skip: day-grid lines following a meeting without a weekday
    """

    marker: str
    weekday_on_date_line: bool
    header_skip: int
    none_skip: int


DIALECT_RULES: Mapping[ScheduleDialect, DialectRules] = {
    ScheduleDialect.LAYOUT_A: DialectRules(
        marker="Schedule",
        weekday_on_date_line=True,
        header_skip=7,
        none_skip=8,
    ),
    ScheduleDialect.LAYOUT_B: DialectRules(
        marker="    Schedule",
        weekday_on_date_line=False,
        header_skip=9,
        none_skip=10,
    ),
}


@dataclass(frozen=True)
class MeetingRange:
    """
    One weekly meeting time of a class.

    weekday follows datetime.date.weekday(): Monday is 0, Sunday is 6.
    """

    start_date: date
    end_date: date
    start_time: time
    end_time: time
    weekday: int
    location: str
    building: str
    room: str

    def first_occurrence(self) -> date:
        """
        Return the first date on or after start_date that falls on weekday.
        """
        offset = (self.weekday - self.start_date.weekday()) % 7
        return self.start_date + timedelta(days=offset)


@dataclass(frozen=True)
class ClassRecord:
    """
    Represents one registered class (one course block of the pasted page).

    crn_line is the raw "CRN: 12345" line, crn the number parsed from it
    (None if the line does not match the CRN pattern).
    """

    name: str
    short_code: str
    schedule_type: str
    instructor: str
    crn: Optional[str]
    crn_line: str
    date_ranges: Tuple[MeetingRange, ...]


@dataclass(frozen=True)
class ExcludedDate:
    """
    One excluded-date entry as supplied by the caller.

    A single date has end=None. A range may be given in either order.
    """

    start: date
    end: Optional[date] = None
