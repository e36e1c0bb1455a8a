"""Command-line argument parsing for MeetingCal.

This module sets up the ``expand`` and ``stats`` commands and the shared
logging options.
"""

import argparse
from datetime import date, datetime
from typing import Optional

from ..recurrence.date_utils import parse_timestamp


def parse_month(value: str) -> date:
    """Parse a ``YYYY-MM`` month argument into the first day of that month.

    Raises:
        argparse.ArgumentTypeError: If the value is not a valid month
    """
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m")
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid month '{value}', expected YYYY-MM") from e
    return parsed.date()


def parse_datetime_arg(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime argument.

    Raises:
        argparse.ArgumentTypeError: If the value is not ISO-8601
    """
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date/time '{value}', expected ISO-8601") from e


def parse_window_bound(value: str) -> str:
    """Validate an ISO-8601 window bound, keeping the text.

    The text is kept so a date-only ``--end`` still covers that whole day.

    Raises:
        argparse.ArgumentTypeError: If the value is not ISO-8601
    """
    parse_datetime_arg(value)
    return value.strip()


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--log-level",
        choices=["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console and file log level",
    )
    verbosity = logging_group.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Log at VERBOSE level"
    )
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    logging_group.add_argument("--log-dir", help="Also write timestamped log files here")
    logging_group.add_argument(
        "--no-log-colors", action="store_true", help="Disable colored console logs"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the MeetingCal argument parser.

    Returns:
        Configured ArgumentParser with ``expand`` and ``stats`` subcommands
    """
    parser = argparse.ArgumentParser(
        prog="meetingcal",
        description="Expand recurring meetings into calendar occurrences",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    expand_parser = subparsers.add_parser(
        "expand", help="Expand meetings into occurrences for a month or date range"
    )
    expand_parser.add_argument("input", help="JSON file with a meeting row or a list of rows")
    window = expand_parser.add_mutually_exclusive_group(required=True)
    window.add_argument("--month", type=parse_month, help="Calendar month, YYYY-MM")
    window.add_argument("--start", type=parse_window_bound, help="Window start (ISO-8601)")
    expand_parser.add_argument(
        "--end", type=parse_window_bound, help="Window end (ISO-8601), required with --start"
    )
    expand_parser.add_argument(
        "--group-by-date", action="store_true", help="Group entries by YYYY-MM-DD"
    )
    expand_parser.add_argument(
        "--max-candidates", type=int, help="Maximum candidate dates per recurring meeting"
    )
    expand_parser.add_argument("--timezone", help="IANA zone for local wall-clock times")
    _add_logging_arguments(expand_parser)

    stats_parser = subparsers.add_parser("stats", help="Count meetings for the calendar header")
    stats_parser.add_argument("input", help="JSON file with a meeting row or a list of rows")
    stats_parser.add_argument(
        "--now", type=parse_datetime_arg, help="Reference time (defaults to now)"
    )
    stats_parser.add_argument("--timezone", help="IANA zone for local wall-clock times")
    _add_logging_arguments(stats_parser)

    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Check argument combinations argparse cannot express.

    Calls ``parser.error`` (which exits with status 2) on invalid input.
    """
    if getattr(args, "command", None) != "expand":
        return
    if args.start is not None and args.end is None:
        parser.error("--end is required with --start")
    if args.month is not None and args.end is not None:
        parser.error("--end cannot be combined with --month")
    max_candidates: Optional[int] = args.max_candidates
    if max_candidates is not None and max_candidates < 1:
        parser.error("--max-candidates must be at least 1")
