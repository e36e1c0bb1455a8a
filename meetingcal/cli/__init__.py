"""Command-line interface for MeetingCal."""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..calendar.view import calendar_stats, expand_meetings, group_by_date, month_range
from ..config.settings import MeetingCalSettings, RecurrenceSettings, get_settings
from ..recurrence.exceptions import RecurrenceValidationError
from ..recurrence.expander import RecurrenceExpander
from ..utils.logging import apply_command_line_overrides, configure_logging
from .parser import create_parser, validate_args

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_VALIDATION_ERROR = 2


def load_meetings(path: str) -> List[Dict[str, Any]]:
    """Read meeting rows from a JSON file holding one row or a list of rows.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not JSON or not rows
    """
    with Path(path).open(encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(row, dict) for row in data):
        return data
    raise ValueError(f"{path} must contain a JSON object or a list of objects")


def _apply_recurrence_overrides(settings: MeetingCalSettings, args: argparse.Namespace) -> None:
    """Replace recurrence settings with a re-validated copy carrying the CLI values.

    Raises:
        ValidationError: If an override is out of range
    """
    overrides: Dict[str, Any] = {}
    for name in ("max_candidates", "timezone"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if not overrides:
        return
    merged = settings.recurrence.model_dump()
    merged.update(overrides)
    settings.recurrence = RecurrenceSettings(**merged)


def _run_expand(args: argparse.Namespace, expander: RecurrenceExpander, meetings: List[Dict[str, Any]]) -> Any:
    if args.month is not None:
        range_start, range_end = month_range(args.month)
    else:
        range_start, range_end = args.start, args.end

    entries = expand_meetings(meetings, range_start, range_end, expander)
    logger.info(f"Expanded {len(meetings)} meetings into {len(entries)} calendar entries")

    if args.group_by_date:
        return {
            day: [entry.model_dump(mode="json") for entry in day_entries]
            for day, day_entries in group_by_date(entries).items()
        }
    return [entry.model_dump(mode="json") for entry in entries]


def _run_stats(args: argparse.Namespace, expander: RecurrenceExpander, meetings: List[Dict[str, Any]]) -> Any:
    return calendar_stats(meetings, args.now, expander).model_dump()


def main_entry(argv: Optional[Sequence[str]] = None) -> int:
    """Run the MeetingCal CLI.

    Args:
        argv: Arguments without the program name, ``sys.argv[1:]`` if omitted

    Returns:
        Process exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    settings = get_settings()
    apply_command_line_overrides(settings, args)
    configure_logging(settings)

    try:
        _apply_recurrence_overrides(settings, args)
    except ValidationError as e:
        logger.error(f"Invalid recurrence option: {e.errors()[0]['msg']}")
        return EXIT_VALIDATION_ERROR

    try:
        meetings = load_meetings(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read meetings from {args.input}: {e}")
        return EXIT_INPUT_ERROR

    try:
        expander = RecurrenceExpander(settings)
        if args.command == "expand":
            output = _run_expand(args, expander, meetings)
        else:
            output = _run_stats(args, expander, meetings)
    except RecurrenceValidationError as e:
        logger.error(f"Invalid input: {e.message}")
        return EXIT_VALIDATION_ERROR

    print(json.dumps(output, indent=2))
    return EXIT_OK


__all__ = ["create_parser", "load_meetings", "main_entry"]
