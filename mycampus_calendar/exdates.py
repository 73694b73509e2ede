"""
Excluded dates (holidays, reading week, cancelled classes).

Each entry is a single date or an inclusive range given in either order.
Entries are expanded into one flat set of dates that the calendar builder
turns into EXDATE values.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, Tuple, Union

from mycampus_calendar.model import ExcludedDate

logger = logging.getLogger(__name__)

# Upper bound on the dates produced by one entry
MAX_DAYS_PER_ENTRY = 365

RANGE_SEPARATOR = ".."

ExcludedEntry = Union[ExcludedDate, date, Tuple[date, date]]


def _as_excluded_date(entry: ExcludedEntry) -> ExcludedDate:
    if isinstance(entry, ExcludedDate):
        return entry
    if isinstance(entry, date):
        return ExcludedDate(entry)
    start, end = entry
    return ExcludedDate(start, end)


def expand_entry(entry: ExcludedEntry) -> list[date]:
    """
    Return every date covered by one entry (at most MAX_DAYS_PER_ENTRY).
    """
    ex = _as_excluded_date(entry)
    if ex.end is None:
        return [ex.start]

    start, end = ex.start, ex.end
    if start > end:
        start, end = end, start

    total = (end - start).days + 1
    if total > MAX_DAYS_PER_ENTRY:
        logger.debug(
            "Excluded range %s..%s spans %d days, keeping the first %d",
            start,
            end,
            total,
            MAX_DAYS_PER_ENTRY,
        )
        total = MAX_DAYS_PER_ENTRY

    return [start + timedelta(days=i) for i in range(total)]


def expand_excluded_dates(entries: Iterable[ExcludedEntry]) -> FrozenSet[date]:
    """
    Expand all entries into one deduplicated set of dates.
    """
    out: set[date] = set()
    for entry in entries:
        out.update(expand_entry(entry))
    return frozenset(out)


def parse_excluded_date(text: str) -> ExcludedDate:
    """
    Parse "YYYY-MM-DD" or "YYYY-MM-DD..YYYY-MM-DD".

    Raises ValueError for anything else.
    """
    raw = text.strip()
    if not raw:
        raise ValueError("Empty excluded date")

    parts = [p.strip() for p in raw.split(RANGE_SEPARATOR)]
    if len(parts) > 2:
        raise ValueError(f"Invalid excluded date range: {text!r}")

    try:
        dates = [datetime.strptime(p, "%Y-%m-%d").date() for p in parts]
    except ValueError as e:
        raise ValueError(f"Invalid excluded date {text!r} (expected YYYY-MM-DD or YYYY-MM-DD..YYYY-MM-DD)") from e

    if len(dates) == 1:
        return ExcludedDate(dates[0])
    return ExcludedDate(dates[0], dates[1])
