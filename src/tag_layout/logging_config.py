# Copyright (c) 2025.
# This file is part of tag-layout, released under the MIT License.
"""
Logging setup for tag-layout.

Library modules only create ``logging.getLogger(__name__)`` loggers under
the ``tag_layout`` namespace. Scripts (experiments, benchmarks, robot code)
call :func:`setup_logging` once to attach output handlers.
"""

import logging
import sys
from typing import Optional, TextIO, Union

LOGGER_NAME = "tag_layout"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"


def reset_handlers(logger: logging.Logger) -> None:
    """Detach and close every handler on ``logger``."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the ``tag_layout`` logger.

    Handlers installed by an earlier call are closed and replaced, so the
    function can be called again to change the level or the log file.

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``.
        log_file: Optional path; the file is truncated and receives the
            same records as the console.
        stream: Console stream, ``sys.stdout`` by default.

    Returns:
        The configured ``tag_layout`` logger.
    """
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level {name!r}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    reset_handlers(logger)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized at %s", logging.getLevelName(level))
    return logger
