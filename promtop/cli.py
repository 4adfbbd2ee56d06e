"""Command-line entry point: ``promtop ENDPOINT``."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.text import Text

from . import __version__
from .app import dashboard
from .fetch import FetchError
from .logging import LogConfig, setup_logging, teardown_logging
from .terminal import TerminalError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promtop",
        description="Browse the metrics a Prometheus/OpenMetrics endpoint exposes.",
    )
    parser.add_argument(
        "endpoint",
        metavar="ENDPOINT",
        help="metrics endpoint, host:port[/path] or a full URL",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _report(console: Console, exc: BaseException) -> None:
    console.print(Text.assemble(("error", "bold red"), ": ", str(exc)))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        log_config = LogConfig.from_env(os.environ)
    except ValueError as exc:
        parser.error(str(exc))

    err = Console(stderr=True)
    handler_ids = setup_logging(log_config) if log_config else []
    try:
        dashboard(args.endpoint)
    except (FetchError, TerminalError) as exc:
        _report(err, exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    finally:
        teardown_logging(handler_ids)
    return EXIT_OK


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
