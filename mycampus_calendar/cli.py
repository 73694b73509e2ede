"""
CLI (Command Line Interface).

This module replaces the point-and-click front end with two commands:

    mycampus-calendar generate <schedule.txt | -> [-o DIR] [-x DATE | -x START..END ...]
    mycampus-calendar default-config [parser.json]

How to get the input:
- open the detail schedule page in the browser
- select everything (Ctrl+A), copy, and paste into a text file
  (or pipe it into `generate -`)

Note:
- The last output folder is remembered, so -o can be omitted next time
- Errors are printed with the offending line; nothing is written on a parse error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from mycampus_calendar.config import ParserConfig
from mycampus_calendar.convert import convert, format_summary
from mycampus_calendar.errors import CalendarError
from mycampus_calendar.exdates import parse_excluded_date
from mycampus_calendar.model import ExcludedDate
from mycampus_calendar.storage import load_last_output_folder, save_last_output_folder


console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def _println(msg: str = "") -> None:
    console.print(msg, markup=False, soft_wrap=True)


def _print_error(msg: str) -> None:
    err_console.print(msg, markup=False, soft_wrap=True, style="bold red")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _excluded_date_arg(text: str) -> ExcludedDate:
    """
    argparse type for -x/--exclude.
    """
    try:
        return parse_excluded_date(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _read_schedule(source: str) -> str:
    """
    Read the pasted schedule from a file, or from stdin for '-'.
    """
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _cmd_generate(args: argparse.Namespace) -> int:
    """
    Convert a pasted schedule into one .ics file per schedule type.
    """
    try:
        data = _read_schedule(args.schedule)
    except (OSError, UnicodeDecodeError) as e:
        _print_error(f"Cannot read schedule data: {e}")
        return 1

    if not data.strip():
        _print_error("Schedule data is empty. Paste the copied schedule page into the file.")
        return 1

    out = Path(args.out) if args.out else load_last_output_folder(args.settings)
    if out is None:
        _print_error("Please provide an output folder (-o/--out).")
        return 1

    try:
        config = ParserConfig.from_json_file(args.parser_config) if args.parser_config else None
        result = convert(data, out, args.exclude or [], config)
    except (CalendarError, NotADirectoryError) as e:
        _print_error(str(e))
        return 1

    for path in result.written:
        _println(f"Writing calendar: {path}")
    for failure in result.failures:
        _print_error(f"Failed to write {failure.path}: {failure.error}")

    if result.summary:
        _println()
        for line in format_summary(result.summary):
            _println(line)
        _println()

    _println(f"Wrote {len(result.written)} .ics file(s).")

    if not result.ok:
        return 1

    try:
        save_last_output_folder(out, args.settings)
    except OSError as e:
        # not fatal, the calendars are written already
        _print_error(f"Could not remember output folder: {e}")

    return 0


def _cmd_default_config(args: argparse.Namespace) -> int:
    """
    Print or write the default parser patterns as JSON.
    """
    text = ParserConfig().to_json()
    if not args.out:
        _println(text)
        return 0

    try:
        Path(args.out).write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        _print_error(f"Cannot write {args.out}: {e}")
        return 1

    _println(f"Default parser config written to: {args.out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(
        prog="mycampus-calendar",
        description="Convert a copied MyCampus schedule into .ics calendars",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    p_generate = sub.add_parser("generate", help="Generate .ics files from copied schedule data")
    p_generate.add_argument("schedule", type=str, help="Text file with the copied schedule page ('-' for stdin)")
    p_generate.add_argument("-o", "--out", type=str, default=None, help="Output folder (default: last used)")
    p_generate.add_argument(
        "-x",
        "--exclude",
        type=_excluded_date_arg,
        action="append",
        metavar="DATE",
        help="Excluded date YYYY-MM-DD or range YYYY-MM-DD..YYYY-MM-DD (repeatable)",
    )
    p_generate.add_argument("--parser-config", type=str, default=None, help="JSON file overriding parser patterns")
    p_generate.add_argument("--settings", type=str, default=None, help=argparse.SUPPRESS)

    p_config = sub.add_parser("default-config", help="Print the default parser patterns as JSON")
    p_config.add_argument("out", type=str, nargs="?", default=None, help="Write to this file instead")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if args.command == "generate":
        raise SystemExit(_cmd_generate(args))
    if args.command == "default-config":
        raise SystemExit(_cmd_default_config(args))

    raise SystemExit(2)
