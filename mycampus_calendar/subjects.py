"""
Subject code resolution.

The course-name line only carries the long subject name
("Computer Science 1060U"), but calendar entries use the short code
("CSCI 1060U"). Resolution tries, in order:

1. the static long-name table below
2. the CRN -> subject index read from the course summary at the top of the page

The table always wins, so codes stay stable even when the summary also
lists the course.
"""

from __future__ import annotations

from types import MappingProxyType
from re import Pattern
from typing import Mapping, Optional, Sequence

from mycampus_calendar.errors import UnknownSubject


SUBJECTS: Mapping[str, str] = MappingProxyType(
    {
        "Academic Learning and Success": "ALSU",
        "Biology": "BIOL",
        "Business": "BUSI",
        "Chemistry": "CHEM",
        "Communications": "COMM",
        "Computer Science": "CSCI",
        "Criminology and Justice": "CRMN",
        "Curriculum Studies": "CURS",
        "Economics": "ECON",
        "Education": "EDUC",
        "Educational Studies and Digital Technology": "AEDT",
        "Electrical Engineering": "ELEE",
        "Energy Systems and Nuclear Science": "ESNS",
        "Engineering": "ENGR",
        "Environmental Science": "ENVS",
        "Forensic Science": "FSCI",
        "Health Science": "HLSC",
        "Indigenous Studies": "INDG",
        "Information Technology": "INFR",
        "Integrated Mathematics and Computer Science": "IMCS",
        "Kinesiology": "KINE",
        "Legal Studies": "LGLS",
        "Liberal Studies": "LBAT",
        "Manufacturing Engineering": "MANE",
        "Mathematics": "MATH",
        "Mechanical Engineering": "MECE",
        "Mechatronics Engineering": "METE",
        "Medical Laboratory Science": "MLSC",
        "Neuroscience": "NSCI",
        "Nuclear": "NUCL",
        "Nursing": "NURS",
        "Physics": "PHY",
        "Political Science": "POSC",
        "Psychology": "PSYC",
        "Radiation Science": "RADI",
        "Science": "SCIE",
        "Science Co-op": "SCCO",
        "Science Co-op Work Term": "SCCO",
        "Social Science": "SSCI",
        "Sociology": "SOCI",
        "Software Engineering": "SOFE",
        "Statistics": "STAT",
        "Sustainable Energy Systems": "ENSY",
    }
)


class StaticTableStrategy:
    """Exact lookup of the long subject name."""

    def __init__(self, table: Mapping[str, str] = SUBJECTS) -> None:
        self.table = table

    def resolve(self, subject: str, crn_line: str) -> Optional[str]:
        return self.table.get(subject)


class CrnIndexStrategy:
    """Lookup of the class CRN in the summary table of the page."""

    def __init__(self, crn_index: Mapping[str, str], crn_re: Pattern[str]) -> None:
        self.crn_index = crn_index
        self.crn_re = crn_re

    def resolve(self, subject: str, crn_line: str) -> Optional[str]:
        m = self.crn_re.search(crn_line)
        if not m:
            return None
        return self.crn_index.get(m.group("crn"))


class SubjectResolver:
    """
    Runs the strategies in order; the first one returning a code wins.
    """

    def __init__(self, strategies: Sequence, crn_index: Mapping[str, str]) -> None:
        self.strategies = tuple(strategies)
        self.crn_index = crn_index

    def resolve(self, subject: str, crn_line: str, line_number: Optional[int] = None) -> str:
        for strategy in self.strategies:
            code = strategy.resolve(subject, crn_line)
            if code:
                return code
        raise UnknownSubject(subject, self.crn_index, line_number=line_number)


def default_resolver(
    crn_index: Mapping[str, str],
    crn_re: Pattern[str],
    table: Mapping[str, str] = SUBJECTS,
) -> SubjectResolver:
    strategies = [StaticTableStrategy(table), CrnIndexStrategy(crn_index, crn_re)]
    return SubjectResolver(strategies, crn_index)
