"""Command-line entry point: ``simple-calculator`` / ``python -m simple_calculator``."""

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import configure_logging, load_settings
from .environment import Environment
from .errors import CalculatorError
from .repl import Session, make_line_reader
from .source import LineSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simple-calculator",
        description="Interactive calculator with variables, constants and math functions.",
    )
    parser.add_argument(
        "--precision",
        type=int,
        help="Digits shown after the decimal point, 0-20 (default: 6, or CALC_PRECISION).",
    )
    parser.add_argument(
        "--history-file",
        type=str,
        help="File used for prompt history; empty string disables it (default: ~/.simple_calculator_history).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level: DEBUG, INFO, WARNING, ERROR (default: WARNING, or CALC_LOG_LEVEL).",
    )
    parser.add_argument(
        "--no-banner",
        action="store_true",
        help="Do not print the help text at start-up.",
    )
    parser.add_argument(
        "--load",
        type=str,
        metavar="FILE",
        help="Load an environment snapshot before the first prompt.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        help="Path of a .env file with CALC_* settings (default: search from the current directory).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(
            env_file=args.env_file,
            precision=args.precision,
            history_file=args.history_file,
            log_level=args.log_level,
            show_banner=False if args.no_banner else None,
        )
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    logger.debug(f"Settings: {settings!r}")

    env = Environment()
    source = LineSource(make_line_reader(settings.history_file, env))
    session = Session(source, env=env, precision=settings.precision)
    if settings.show_banner:
        session.help()
    if args.load:
        try:
            session.load_file(args.load)
        except CalculatorError as e:
            session.report(e)
    session.run()
    return 0
