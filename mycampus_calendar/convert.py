"""
Conversion pipeline (pasted schedule -> .ics files).

    text --parse--> ClassRecords --CalendarBuilder--> CalendarDocuments --write--> files

Parsing is all-or-nothing: any structured error from parse.py propagates
before a single file is touched. Writing is best effort per file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from mycampus_calendar.config import ParserConfig
from mycampus_calendar.exdates import ExcludedEntry, expand_excluded_dates
from mycampus_calendar.export_ics import CalendarBuilder, CalendarDocument, WriteFailure, write_calendars
from mycampus_calendar.parse import parse_schedule
from mycampus_calendar.subjects import SUBJECTS

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    documents: Dict[str, CalendarDocument]
    written: List[Path] = field(default_factory=list)
    failures: List[WriteFailure] = field(default_factory=list)
    summary: Dict[str, Dict[str, int]] = field(default_factory=dict)
    excluded_dates: frozenset = frozenset()

    @property
    def count(self) -> int:
        """Number of calendar documents constructed (written or not)."""
        return len(self.documents)

    @property
    def ok(self) -> bool:
        return not self.failures


def format_summary(summary: Mapping[str, Mapping[str, int]]) -> List[str]:
    """
    Render the per-class summary with right-aligned class names:

        Programming Workshop I → Laboratory: 1, Lecture: 2
                      Calculus → Lecture: 2
    """
    if not summary:
        return []

    width = max(len(name) for name in summary)
    lines: List[str] = []
    for name in sorted(summary):
        counts = ", ".join(f"{class_type}: {count}" for class_type, count in sorted(summary[name].items()))
        lines.append(f"{name:>{width}} → {counts}")
    return lines


def convert(
    raw_data: str,
    output_folder: str | Path,
    excluded: Iterable[ExcludedEntry] = (),
    config: Optional[ParserConfig] = None,
    *,
    table: Mapping[str, str] = SUBJECTS,
    clock: Optional[Callable[[], datetime]] = None,
) -> GenerationResult:
    """
    Parse the pasted schedule, build one calendar per schedule type and
    write them to output_folder.
    """
    folder = Path(output_folder)
    if not folder.is_dir():
        raise NotADirectoryError(f"Output folder does not exist: {folder}")

    records = parse_schedule(raw_data, config, table)
    excluded_dates = expand_excluded_dates(excluded)
    logger.debug("Excluded dates: %s", sorted(excluded_dates))

    builder = CalendarBuilder(excluded_dates, clock=clock).add_classes(records)
    written, failures = write_calendars(builder.documents, folder)

    result = GenerationResult(
        documents=builder.documents,
        written=written,
        failures=failures,
        summary=builder.sorted_summary(),
        excluded_dates=excluded_dates,
    )
    logger.info("Wrote %d .ics file(s).", len(written))
    return result

