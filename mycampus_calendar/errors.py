"""
Error taxonomy.

Every problem the converter can detect is raised as a subclass of
CalendarError, carrying enough context (offending line, expected field,
pattern name) for a caller to show an actionable message.

Parsing is strict: the first error aborts the whole run.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence


class CalendarError(Exception):
    """Base class for all converter errors."""


class ConfigError(CalendarError):
    """Parser configuration could not be loaded."""


class InvalidPattern(ConfigError):
    def __init__(self, pattern_name: str, pattern: str, reason: str) -> None:
        self.pattern_name = pattern_name
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid pattern {pattern_name!r} ({reason}): {pattern}")


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class ScheduleParseError(CalendarError):
    """
    Base class for errors raised while reading the pasted schedule.

    line_number is 1-based and refers to the line of the (normalized)
    input text, or None when the input ended.
    """

    line_number: Optional[int] = None

    def _where(self) -> str:
        return f" (line {self.line_number})" if self.line_number else ""


class DialectNotRecognized(ScheduleParseError):
    def __init__(self) -> None:
        super().__init__(
            "Failed to find the 'Schedule' line to determine the page layout. "
            "Copy the whole schedule page, including the heading."
        )


class PrefaceNotFound(ScheduleParseError):
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        super().__init__(f"Failed to find the start of the schedule (a line starting with {prefix!r})")


class StructuralParseError(ScheduleParseError):
    """A required line is missing (the input ended too early)."""

    def __init__(self, expected_field: str, line_number: Optional[int] = None) -> None:
        self.expected_field = expected_field
        self.line_number = line_number
        super().__init__(f"Input ended while expecting {expected_field}{self._where()}")


class PatternMismatch(ScheduleParseError):
    """A line is present but does not match the pattern it has to match."""

    def __init__(self, pattern_name: str, raw_line: str, line_number: Optional[int] = None) -> None:
        self.pattern_name = pattern_name
        self.raw_line = raw_line
        self.line_number = line_number
        super().__init__(f"Line does not match {pattern_name}{self._where()}: {raw_line!r}")


class FieldParseError(ScheduleParseError):
    """Date, time or weekday text was found but could not be parsed."""

    def __init__(
        self,
        kind: str,
        raw: str,
        cause: Optional[BaseException] = None,
        line_number: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.raw = raw
        self.cause = cause
        self.line_number = line_number
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to parse {kind} {raw!r}{self._where()}{detail}")


class UnknownSubject(ScheduleParseError):
    def __init__(self, subject: str, known_crns: Mapping[str, str], line_number: Optional[int] = None) -> None:
        self.subject = subject
        self.known_crns = dict(known_crns)
        self.line_number = line_number
        known = ", ".join(f"{crn}={code}" for crn, code in sorted(self.known_crns.items())) or "none"
        super().__init__(
            f"Failed to get short subject code for subject {subject!r}{self._where()}. "
            f"Found subjects: {known}"
        )


# ---------------------------------------------------------------------------
# Output errors
# ---------------------------------------------------------------------------


class FilenameCollision(CalendarError):
    """Two schedule types would be written to the same file."""

    def __init__(self, filename: str, schedule_types: Sequence[str]) -> None:
        self.filename = filename
        self.schedule_types = tuple(schedule_types)
        names = ", ".join(repr(t) for t in self.schedule_types)
        super().__init__(f"Schedule types {names} would all be written to {filename}")
