# JournalSync Logging
# Routes library log records to a Rich console and an optional log file

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler

LOGGER_NAME = "journalsync"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    level: str | int = logging.WARNING,
    *,
    log_file: Optional[Path] = None,
    console: Optional[RichConsole] = None,
) -> logging.Logger:
    """
    Configure the journalsync logger.

    Replaces handlers installed by a previous call, so it is safe to call
    once per CLI invocation.

    Args:
        level: Log level name or number.
        log_file: Optional file that receives every record at the same level.
        console: Rich console for terminal output (stderr if not given).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or RichConsole(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
