"""Command-line interface for fetching a URL through the emulated ``HttpMessage``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console

from . import __version__
from .config import ConfigError, load_environment, load_settings
from .logging_utils import configure_logging
from .message import HttpMessage, MessageType


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="greasyspoon-emulator",
        description="Fetch a URL once and show what a GreasySpoon HttpMessage would expose.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("url", help="Target http(s) URL (redirects are not followed)")
    parser.add_argument(
        "--type",
        dest="message_type",
        choices=[member.value for member in MessageType],
        default=MessageType.RESPONSE.value,
        help="Message type to emulate",
    )
    parser.add_argument("--status", action="store_true", help="Print the status code")
    parser.add_argument("--headers", action="store_true", help="Print all response headers")
    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="NAME",
        help="Print the value of a single header (repeatable)",
    )
    parser.add_argument("--body", action="store_true", help="Print the response body")
    parser.add_argument("--log-json", action="store_true", help="Emit structured JSON logs to the log file")
    parser.add_argument("--log-file", type=Path, help="Write logs to the specified path")
    parser.add_argument(
        "--redact",
        action="append",
        default=[],
        metavar="NAME",
        help="Hide this header's value in logs, besides cookies and credentials (repeatable)",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Reduce logging output")
    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(None if argv is None else list(argv))


def configure_cli_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    configure_logging(
        level=level,
        json_logs=args.log_json,
        logfile=args.log_file,
        redact=args.redact,
    )


def main(argv: Optional[Iterable[str]] = None) -> int:
    load_environment()
    args = parse_args(argv)

    configure_cli_logging(args)
    logger = logging.getLogger("greasyspoon_emulator.cli")
    console = Console(highlight=False, soft_wrap=True)

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    show_all = not (args.status or args.headers or args.header or args.body)

    with HttpMessage(args.url, args.message_type, settings=settings) as message:
        if show_all or args.status:
            console.print(f"Status: {message.get_type()}", markup=False)
        if show_all or args.headers:
            console.print(message.get_response_headers(), end="", markup=False)
        for name in args.header:
            value = message.get_response_header(name)
            console.print(f"{name}: {'' if value is None else value}", markup=False)
        if show_all or args.body:
            if show_all:
                console.print()
            console.print(message.get_body(), end="", markup=False)

        if message.errors:
            logger.error("%d error(s) while emulating %s", len(message.errors), args.url)
            return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
