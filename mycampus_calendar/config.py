"""
Parser configuration.

The pasted schedule is recognized with six regular expressions. Each one can
be overridden (e.g. when the university renames a heading) by a small JSON
file such as:

    {"message_re": "\\| Type: (?P<class_type>.+?) \\|"}

Fields that are not given keep their defaults.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from re import Pattern
from typing import Any, Dict, Mapping

from mycampus_calendar.errors import ConfigError, InvalidPattern


# Named groups every pattern must define
REQUIRED_GROUPS: Dict[str, tuple[str, ...]] = {
    "course_summary_re": ("subject", "crn"),
    "course_name_re": ("name", "subject", "code"),
    "date_re": ("start", "end", "weekday"),
    "time_re": ("start", "end", "location", "building", "room"),
    "message_re": ("class_type",),
    "crn_re": ("crn",),
}


@dataclass(frozen=True)
class ParserConfig:
    # "Programming Workshop I<TAB>CSCI 1060U, 001<TAB>...<TAB>40123"
    course_summary_re: str = r"^.+?\t(?P<subject>[A-Z]{4}) \d{4}U, .+?\t(?P<crn>\d{5})"
    # "Programming Workshop I | Computer Science 1060U Section 001 | Lecture"
    course_name_re: str = r"^(?P<name>.+?) \| (?P<subject>.+?) (?P<code>\d+U)"
    # "09/04/2024 -- 12/02/2024   Wednesday" (weekday only in layout A)
    date_re: str = r"^(?P<start>[\d/]+) -- (?P<end>[\d/]+)(?:\s+(?P<weekday>\w+))?"
    time_re: str = (
        r"^\s+(?P<start>\d+:\d+ \w+) - (?P<end>\d+:\d+ \w+).+?"
        r"Location: (?P<location>.+?) Building: (?P<building>.+?) Room: (?P<room>.+)"
    )
    message_re: str = r"\| Schedule Type: (?P<class_type>.+?) \|"
    crn_re: str = r"^CRN: (?P<crn>\d{5})"

    @classmethod
    def from_dict(cls, overrides: Mapping[str, Any]) -> "ParserConfig":
        """
        Build a config from the defaults with the given patterns replaced.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown parser pattern(s): {', '.join(unknown)}")

        for key, value in overrides.items():
            if not isinstance(value, str):
                raise ConfigError(f"Parser pattern {key!r} must be a string, got {type(value).__name__}")

        return replace(cls(), **dict(overrides))

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ParserConfig":
        config_path = Path(path)
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read parser config {config_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Parser config {config_path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Parser config {config_path} must contain a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def compile(self) -> "CompiledPatterns":
        compiled: Dict[str, Pattern[str]] = {}
        for name, pattern in self.to_dict().items():
            try:
                regex = re.compile(pattern)
            except re.error as e:
                raise InvalidPattern(name, pattern, str(e)) from e

            missing = [g for g in REQUIRED_GROUPS[name] if g not in regex.groupindex]
            if missing:
                raise InvalidPattern(name, pattern, f"missing named group(s): {', '.join(missing)}")
            compiled[name] = regex
        return CompiledPatterns(**compiled)


@dataclass(frozen=True)
class CompiledPatterns:
    course_summary_re: Pattern[str]
    course_name_re: Pattern[str]
    date_re: Pattern[str]
    time_re: Pattern[str]
    message_re: Pattern[str]
    crn_re: Pattern[str]
