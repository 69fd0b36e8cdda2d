"""loguru sink setup.

The terminal is in raw alternate-screen mode while the app runs, so the
default stderr sink is replaced by a rotating file.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger
from platformdirs import user_log_dir

from .config import APP_NAME

LOG_LEVEL_ENV = "REDISROVER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"


def _add_file_sink(target: Path, level: str) -> None:
    logger.add(
        target,
        level=level,
        rotation="1 MB",
        retention=3,
        enqueue=False,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} | {message}",
    )


def setup_logging(path: Path | None = None, level: str | None = None) -> Path:
    """Route all log records to ``path`` and return it.

    ``level`` falls back to ``$REDISROVER_LOG_LEVEL`` and then ``INFO``; an
    unknown level name is replaced by ``INFO``.
    """
    target = path if path is not None else DEFAULT_LOG_PATH
    chosen_level = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    logger.remove()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            _add_file_sink(target, chosen_level)
        except ValueError:
            _add_file_sink(target, DEFAULT_LOG_LEVEL)
            logger.warning("unknown log level {!r}; using {}", chosen_level, DEFAULT_LOG_LEVEL)
    except OSError as exc:
        logger.add(sys.stderr, level="ERROR")
        logger.error("cannot open log file {}: {}", target, exc)
    return target


__all__ = ["LOG_LEVEL_ENV", "DEFAULT_LOG_PATH", "setup_logging"]
