"""Command-line front door for redisrover.

Parses CLI options, merges them over the JSON config, sets up logging, and
dispatches into the interactive runtime.
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from loguru import logger

from .runtime import config
from .runtime.logs import setup_logging
from .runtime.loop import RuntimeLoopTiming


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _positive_float(value: str) -> float:
    """argparse type for positive float values."""
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be > 0")
    return parsed


def _log_level(value: str) -> str:
    """argparse type for a loguru level name."""
    name = value.upper()
    try:
        logger.level(name)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown log level: {value!r}") from exc
    return name


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse a Redis keyspace in the terminal.")
    parser.add_argument("--url", default=None, help=f"Redis URL (default: {config.DEFAULT_URL}).")
    parser.add_argument("--page-size", type=_positive_int, default=None, help="SCAN COUNT hint per page.")
    parser.add_argument("--tick-rate", type=_positive_float, default=None, help="Ticks per second.")
    parser.add_argument("--frame-rate", type=_positive_float, default=None, help="Frames per second.")
    parser.add_argument(
        "--socket-timeout",
        type=_positive_float,
        default=None,
        help="Seconds before a Redis call times out (default: no timeout).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Log file path.")
    parser.add_argument("--log-level", type=_log_level, default=None, help="Log level (DEBUG, INFO, ...).")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and run an interactive session.

    Explicit options win over the config file, which wins over built-in
    defaults.
    """
    args = build_parser().parse_args(argv)
    log_path = setup_logging(args.log_file, args.log_level)

    from .runtime import run_app

    url = args.url or config.load_url()
    timing = RuntimeLoopTiming(
        tick_rate=args.tick_rate or config.load_tick_rate(),
        frame_rate=args.frame_rate or config.load_frame_rate(),
    )
    logger.info("starting redisrover against {} (log: {})", url, log_path)
    asyncio.run(
        run_app(
            url,
            timing=timing,
            bindings=config.load_keybindings(),
            page_size=args.page_size or config.load_page_size(),
            socket_timeout=args.socket_timeout,
        )
    )


if __name__ == "__main__":
    main()
