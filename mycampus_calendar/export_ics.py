"""
iCalendar (.ics) export.

Every class becomes one weekly recurring event per meeting time. Events are
grouped by schedule type (Lecture, Laboratory, Tutorial, ...) so each group
can be imported as its own calendar into:
- Google Calendar
- Outlook
- Apple Calendar

All times are local to America/Toronto; the VTIMEZONE block is hard-coded.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from mycampus_calendar.errors import FilenameCollision
from mycampus_calendar.model import ClassRecord, MeetingRange

logger = logging.getLogger(__name__)


TZID = "America/Toronto"

CALENDAR_HEADER = f"""\
BEGIN:VCALENDAR
VERSION:2.0
PRODID:MYCAMPUS-CALENDAR-RS
CALSCALE:GREGORIAN
BEGIN:VTIMEZONE
TZID:{TZID}
LAST-MODIFIED:20201011T015911Z
TZURL:http://tzurl.org/zoneinfo-outlook/{TZID}
X-LIC-LOCATION:{TZID}
BEGIN:DAYLIGHT
TZNAME:EDT
TZOFFSETFROM:-0500
TZOFFSETTO:-0400
DTSTART:19700308T020000
RRULE:FREQ=YEARLY;BYMONTH=3;BYDAY=2SU
END:DAYLIGHT
BEGIN:STANDARD
TZNAME:EST
TZOFFSETFROM:-0400
TZOFFSETTO:-0500
DTSTART:19701101T020000
RRULE:FREQ=YEARLY;BYMONTH=11;BYDAY=1SU
END:STANDARD
END:VTIMEZONE
"""

CALENDAR_FOOTER = "END:VCALENDAR"

# Content characters per physical line before a fold is forced
FOLD_LIMIT = 74

UNSAFE_FILENAME_CHARS = "/\\<>:\"'|?* \r\n\0"

FILE_EXTENSION = ".ics"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _local(dt: datetime) -> str:
    """
    Format a naive local datetime as ICS 'YYYYMMDDTHHMMSS'.
    """
    return dt.strftime("%Y%m%dT%H%M%S")


def _tzid(dt: datetime) -> str:
    return f"TZID={TZID}:{_local(dt)}"


def fold_lines(text: str) -> str:
    """
    Fold long lines: count the characters since the last line break and,
    when the count reaches FOLD_LIMIT, insert a newline and a single space
    before that character and start counting again.

    Removing every inserted "\\n " gives back the original text.
    """
    out: List[str] = []
    line_length = 0
    for c in text:
        if c == "\n":
            line_length = 0
        else:
            line_length += 1
            if line_length >= FOLD_LIMIT:
                out.append("\n ")
                line_length = 0
        out.append(c)
    return "".join(out)


def calendar_filename(schedule_type: str) -> str:
    """
    Derive a safe file name from a schedule type ("Lecture" -> "Lecture.ics").
    """
    safe = "".join("_" if c in UNSAFE_FILENAME_CHARS else c for c in schedule_type)
    return safe + FILE_EXTENSION


def format_exdate(excluded_dates: Iterable[date], start_time: time) -> Optional[str]:
    """
    Build the EXDATE line for one event, or None if nothing is excluded.
    """
    values = [_local(datetime.combine(d, start_time)) for d in sorted(excluded_dates)]
    if not values:
        return None
    return f"EXDATE;TZID={TZID}:" + ",".join(values)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@dataclass
class CalendarDocument:
    """
    One .ics file: the header, then event blocks appended by the builder.
    """

    schedule_type: str
    parts: List[str] = field(default_factory=lambda: [CALENDAR_HEADER])
    event_count: int = 0
    _finalized: Optional[str] = field(default=None, init=False, repr=False)

    @property
    def filename(self) -> str:
        return calendar_filename(self.schedule_type)

    def add_event(self, block: str) -> None:
        if self._finalized is not None:
            raise RuntimeError(f"Calendar {self.schedule_type!r} is already finalized")
        self.parts.append(block)
        self.event_count += 1

    def finalize(self) -> str:
        """
        Append the footer, fold long lines and switch to CRLF line endings.
        """
        if self._finalized is not None:
            raise RuntimeError(f"Calendar {self.schedule_type!r} is already finalized")

        calendar = "".join(self.parts) + CALENDAR_FOOTER
        calendar = fold_lines(calendar)
        self._finalized = calendar.replace("\n", "\r\n")
        return self._finalized

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    @property
    def text(self) -> str:
        if self._finalized is None:
            return self.finalize()
        return self._finalized


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CalendarBuilder:
    """
    Collects classes into one CalendarDocument per schedule type.

    clock and uid_factory exist so tests can pin DTSTAMP and UID.
    """

    def __init__(
        self,
        excluded_dates: Iterable[date] = (),
        clock: Optional[Callable[[], datetime]] = None,
        uid_factory: Callable[[], object] = uuid.uuid4,
    ) -> None:
        self.excluded_dates = frozenset(excluded_dates)
        self.clock = clock or _utc_now
        self.uid_factory = uid_factory
        self.documents: Dict[str, CalendarDocument] = {}
        self.summary: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))

    def add_class(self, record: ClassRecord) -> None:
        calendar = self.documents.get(record.schedule_type)
        if calendar is None:
            calendar = self.documents[record.schedule_type] = CalendarDocument(record.schedule_type)

        class_summary = self.summary[record.name]
        # keep the class listed even if it has no meeting times
        class_summary[record.schedule_type] += 0

        for meeting in record.date_ranges:
            calendar.add_event(self.event_block(record, meeting))
            class_summary[record.schedule_type] += 1

    def add_classes(self, records: Iterable[ClassRecord]) -> "CalendarBuilder":
        for record in records:
            self.add_class(record)
        return self

    def event_block(self, record: ClassRecord, meeting: MeetingRange) -> str:
        first_date = meeting.first_occurrence()
        dtstamp = self.clock().astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        until = datetime.combine(meeting.end_date, time(23, 59, 59))

        lines = [
            "BEGIN:VEVENT",
            f"DTSTAMP:{dtstamp}",
            f"UID:{self.uid_factory()}",
            f"DTSTART;{_tzid(datetime.combine(first_date, meeting.start_time))}",
            f"DTEND;{_tzid(datetime.combine(first_date, meeting.end_time))}",
            f"RRULE:FREQ=WEEKLY;TZID={TZID};UNTIL={_local(until)}",
        ]
        exdate = format_exdate(self.excluded_dates, meeting.start_time)
        if exdate:
            lines.append(exdate)
        lines.extend(
            [
                f"SUMMARY:{record.name}",
                f"DESCRIPTION:Campus: {meeting.location}\\nCode: {record.short_code}"
                f"\\n{record.crn_line}\\n{record.instructor}",
                f"LOCATION:{meeting.building} - {meeting.room}",
                "END:VEVENT",
            ]
        )
        return "\n".join(lines) + "\n"

    def sorted_summary(self) -> Dict[str, Dict[str, int]]:
        """
        Occurrence counts per class name and schedule type, sorted by name.
        """
        return {name: dict(sorted(types.items())) for name, types in sorted(self.summary.items())}


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


@dataclass
class WriteFailure:
    schedule_type: str
    path: Path
    error: OSError


def check_filename_collisions(documents: Iterable[CalendarDocument]) -> None:
    """
    Raise FilenameCollision if two schedule types map to the same file name.
    """
    by_name: Dict[str, List[str]] = defaultdict(list)
    for doc in documents:
        by_name[doc.filename].append(doc.schedule_type)

    for filename, types in sorted(by_name.items()):
        if len(types) > 1:
            raise FilenameCollision(filename, types)


def write_calendars(
    documents: Dict[str, CalendarDocument] | Iterable[CalendarDocument],
    output_folder: str | Path,
) -> tuple[list[Path], list[WriteFailure]]:
    """
    Write every document to '<output_folder>/<schedule type>.ics'.

    A failing file does not stop the others; failures are returned.
    """
    docs = list(documents.values()) if isinstance(documents, dict) else list(documents)
    check_filename_collisions(docs)

    folder = Path(output_folder)
    written: list[Path] = []
    failures: list[WriteFailure] = []

    for doc in docs:
        path = folder / doc.filename
        try:
            # newline="" keeps the CRLF line endings as they are
            with open(path, "w", encoding="utf-8", newline="") as fh:
                fh.write(doc.text)
        except OSError as e:
            logger.warning("Failed to write calendar %s: %s", path, e)
            failures.append(WriteFailure(doc.schedule_type, path, e))
            continue

        logger.info("Writing calendar: %s", path)
        written.append(path)

    return written, failures
