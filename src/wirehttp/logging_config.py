"""Logging setup for the wirehttp package logger.

Library modules only call ``logging.getLogger(__name__)``; nothing is
configured until an application (or the CLI) calls ``setup_logging``.
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "wirehttp"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _add_handler(logger: logging.Logger, handler: logging.Handler, level: int, fmt: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Route wirehttp log records to stderr and optionally a file.

    Calling it again only changes the level, unless force is set, in which
    case existing handlers are closed and replaced.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Also append records to this file
        format_string: logging.Formatter format (default: LOG_FORMAT)
        force: Replace handlers that are already installed

    Returns:
        The "wirehttp" logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    # Records stop here so an application's root handlers don't print them twice
    logger.propagate = False

    if logger.handlers and not force:
        return logger

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fmt = format_string or LOG_FORMAT
    # stderr keeps log lines out of the response body printed on stdout
    _add_handler(logger, logging.StreamHandler(sys.stderr), numeric_level, fmt)
    if log_file:
        _add_handler(logger, logging.FileHandler(log_file), numeric_level, fmt)

    return logger
