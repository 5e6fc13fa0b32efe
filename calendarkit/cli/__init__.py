"""Command-line interface for calendarkit."""

import logging
import sys
from typing import Optional

import yaml

from ..config import load_settings
from ..exceptions import CalendarKitError
from ..utils.logging import setup_logging
from .commands import COMMANDS
from .parser import create_parser

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, configure logging and run the selected subcommand.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except (ValueError, yaml.YAMLError) as e:
        # pydantic ValidationError subclasses ValueError
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    log_level = args.log_level or ("VERBOSE" if args.verbose else settings.log_level)
    setup_logging(log_level, debug_mode=args.debug)

    try:
        return COMMANDS[args.command](args, settings)
    except CalendarKitError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


__all__ = ["create_parser", "main"]
