"""Command-line argument parsing for calendarkit."""

import argparse
from pathlib import Path

from .. import __version__

SUPPORTED_SUFFIXES = (".ics", ".json")


def calendar_path(value: str) -> Path:
    """Argument type for calendar files: an existing ``.ics`` or ``.json`` file.

    Raises:
        argparse.ArgumentTypeError: If the suffix is unsupported or the file is missing
    """
    path = Path(value)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise argparse.ArgumentTypeError(
            f"Unsupported calendar file '{value}'. Expected one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )
    if not path.exists():
        raise argparse.ArgumentTypeError(f"Calendar file not found: {value}")
    return path


def output_path(value: str) -> Path:
    path = Path(value)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise argparse.ArgumentTypeError(
            f"Unsupported output file '{value}'. Expected one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )
    return path


def positive_minutes(value: str) -> int:
    try:
        minutes = int(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"Invalid number of minutes: '{value}'") from err
    if minutes < 0:
        raise argparse.ArgumentTypeError(f"Minutes must not be negative: {minutes}")
    return minutes


def _add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("calendar", type=calendar_path, help="Calendar file (.ics or .json)")
    parser.add_argument(
        "--start",
        required=True,
        metavar="DATETIME",
        help="Window start, 'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DDTHH:MM:SS'",
    )
    parser.add_argument("--end", required=True, metavar="DATETIME", help="Window end")
    parser.add_argument(
        "--timezone",
        "-z",
        metavar="ZONE",
        help="IANA zone of the window (default: settings default_timezone)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the command line parser with one subcommand per operation.

    Example:
        >>> parser = create_parser()
        >>> args = parser.parse_args(
        ...     ["gaps", "work.ics", "--start", "2025-11-03 08:00:00", "--end", "2025-11-03 18:00:00"]
        ... )
    """
    parser = argparse.ArgumentParser(
        prog="calendarkit",
        description="calendarkit - timezone-aware calendar analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s occurrences work.ics --start 2025-11-03T00:00:00 --end 2025-11-09T23:59:59
  %(prog)s gaps work.ics --start "2025-11-03 08:00:00" --end "2025-11-03 18:00:00" --min-minutes 30
  %(prog)s density work.json --start 2025-11-03T08:00:00 --end 2025-11-03T18:00:00 -z Europe/Berlin
  %(prog)s convert work.ics work.json
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", "-c", metavar="FILE", help="YAML settings file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    occurrences = subparsers.add_parser("occurrences", help="List occurrences in a window")
    _add_window_arguments(occurrences)
    occurrences.add_argument(
        "--active-only", action="store_true", help="Leave out cancelled events"
    )

    gaps = subparsers.add_parser("gaps", help="List free gaps in a window")
    _add_window_arguments(gaps)
    gaps.add_argument(
        "--min-minutes",
        type=positive_minutes,
        default=0,
        help="Shortest gap to report in minutes (default: 0)",
    )

    overlaps = subparsers.add_parser("overlaps", help="List overlapping occurrences")
    _add_window_arguments(overlaps)

    density = subparsers.add_parser("density", help="Report schedule density")
    _add_window_arguments(density)

    convert = subparsers.add_parser("convert", help="Convert between .ics and .json")
    convert.add_argument("calendar", type=calendar_path, help="Input calendar file")
    convert.add_argument("output", type=output_path, help="Output calendar file")

    return parser
